"""Completion calls to the configured AI providers, with fallback."""

import os
from dataclasses import dataclass

from anthropic import Anthropic
from openai import OpenAI
from rich.console import Console

from .config import (
    ANTHROPIC_KEY_ENV,
    ANTHROPIC_MODEL,
    ANTHROPIC_THINKING_MODEL,
    APP_URL_ENV,
    DEEPSEEK_BASE_URL,
    DEEPSEEK_KEY_ENV,
    DEEPSEEK_MODEL,
    DEEPSEEK_THINKING_MODEL,
    DEFAULT_APP_URL,
    OPENROUTER_BASE_URL,
    OPENROUTER_KEY_ENV,
    OPENROUTER_MODEL,
)
from .errors import ProviderUnavailable

console = Console(stderr=True)


@dataclass
class Provider:
    """One configured provider. ``kind`` is "anthropic" or "openai" (compatible API)."""

    name: str
    kind: str
    api_key: str
    model: str
    thinking_model: str
    base_url: str | None = None
    headers: dict | None = None

    def complete(
        self, system: str, prompt: str, max_tokens: int, temperature: float, thinking: bool
    ) -> str:
        model = self.thinking_model if thinking else self.model

        if self.kind == "anthropic":
            client = Anthropic(api_key=self.api_key)
            response = client.messages.create(
                model=model,
                max_tokens=max_tokens,
                temperature=temperature,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
            return response.content[0].text

        client = OpenAI(api_key=self.api_key, base_url=self.base_url, default_headers=self.headers)
        response = client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
            temperature=temperature,
        )
        return response.choices[0].message.content or ""


def providers_from_env(env: dict | None = None) -> list[Provider]:
    """Providers with an API key set, in default preference order."""
    env = os.environ if env is None else env
    providers = []

    if env.get(ANTHROPIC_KEY_ENV):
        providers.append(
            Provider(
                name="anthropic",
                kind="anthropic",
                api_key=env[ANTHROPIC_KEY_ENV],
                model=ANTHROPIC_MODEL,
                thinking_model=ANTHROPIC_THINKING_MODEL,
            )
        )

    if env.get(DEEPSEEK_KEY_ENV):
        providers.append(
            Provider(
                name="deepseek",
                kind="openai",
                api_key=env[DEEPSEEK_KEY_ENV],
                model=DEEPSEEK_MODEL,
                thinking_model=DEEPSEEK_THINKING_MODEL,
                base_url=DEEPSEEK_BASE_URL,
            )
        )

    if env.get(OPENROUTER_KEY_ENV):
        providers.append(
            Provider(
                name="openrouter",
                kind="openai",
                api_key=env[OPENROUTER_KEY_ENV],
                model=OPENROUTER_MODEL,
                thinking_model=OPENROUTER_MODEL,
                base_url=OPENROUTER_BASE_URL,
                headers={
                    "HTTP-Referer": env.get(APP_URL_ENV, DEFAULT_APP_URL),
                    "X-Title": "Brain Dumper",
                },
            )
        )

    return providers


@dataclass
class Completion:
    text: str
    provider: str


class LLM:
    """Tries each provider in turn until one answers."""

    def __init__(self, providers: list[Provider]):
        self.providers = providers

    @classmethod
    def from_env(cls) -> "LLM":
        return cls(providers_from_env())

    def ordered(self, preferred: str | None = None) -> list[Provider]:
        """Providers with ``preferred`` moved to the front."""
        if not preferred:
            return list(self.providers)
        first = [p for p in self.providers if p.name == preferred]
        rest = [p for p in self.providers if p.name != preferred]
        return first + rest

    def complete(
        self,
        system: str,
        prompt: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        thinking: bool = False,
        preferred: str | None = None,
    ) -> Completion:
        """Return the first successful completion."""
        providers = self.ordered(preferred)
        if not providers:
            raise ProviderUnavailable(
                f"No AI API available. Set {ANTHROPIC_KEY_ENV}, {DEEPSEEK_KEY_ENV} or {OPENROUTER_KEY_ENV}."
            )

        for provider in providers:
            try:
                text = provider.complete(system, prompt, max_tokens, temperature, thinking)
            except Exception as e:
                console.print(f"[yellow]{provider.name} API error: {e}[/yellow]")
                continue
            if text:
                return Completion(text=text, provider=provider.name)
            console.print(f"[yellow]{provider.name} returned an empty response[/yellow]")

        raise ProviderUnavailable("All configured AI providers failed")
