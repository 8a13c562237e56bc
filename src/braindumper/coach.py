"""Task coaching: break a task into tiny steps, or help when stuck."""

from .models import BreakdownStep, StuckHelp, TaskBreakdown
from .normalizer import parse_json_response

BREAKDOWN_PROMPT = """You are a helpful task breakdown assistant. Given a task, break it down into
3-5 tiny, actionable steps that take 5-15 minutes each.

Respond in valid JSON only:
{
  "steps": [
    {"id": string, "title": string, "timeEstimate": string, "tip": string | null}
  ],
  "encouragement": string
}"""

HELP_PROMPT = """You are a productivity coach. The user is stuck on a task. Give them 2-3
practical tips to get started. Be encouraging and concise.

Respond in valid JSON only:
{
  "tips": [string],
  "motivation": string
}"""

DEFAULT_ENCOURAGEMENT = "One small step at a time. You've got this!"
DEFAULT_MOTIVATION = "Starting is the hardest part. Pick the smallest step and begin."


def _task_prompt(lead: str, title: str, description: str | None) -> str:
    return f"{lead}\n\nTask: {title}\nDetails: {description or 'No additional details'}"


def breakdown_task(llm, title: str, description: str | None = None) -> TaskBreakdown:
    """Split a task into small steps. Raises MalformedResponse on an unreadable reply."""
    completion = llm.complete(
        BREAKDOWN_PROMPT,
        _task_prompt("Break down this task into tiny steps:", title, description),
        max_tokens=1000,
        temperature=0.7,
    )
    data = parse_json_response(completion.text)

    steps = []
    raw_steps = data.get("steps") if isinstance(data.get("steps"), list) else []
    for index, raw in enumerate(raw_steps):
        if not isinstance(raw, dict):
            continue
        steps.append(
            BreakdownStep(
                id=str(raw.get("id") or f"step_{index + 1}"),
                title=str(raw.get("title") or f"Step {index + 1}"),
                time_estimate=str(raw.get("timeEstimate") or "5-15 min"),
                tip=str(raw["tip"]) if raw.get("tip") else None,
            )
        )

    return TaskBreakdown(
        steps=steps,
        encouragement=str(data.get("encouragement") or DEFAULT_ENCOURAGEMENT),
    )


def get_unstuck(llm, title: str, description: str | None = None) -> StuckHelp:
    """Tips for starting a task. Raises MalformedResponse on an unreadable reply."""
    completion = llm.complete(
        HELP_PROMPT,
        _task_prompt("I'm stuck on this task:", title, description),
        max_tokens=500,
        temperature=0.8,
    )
    data = parse_json_response(completion.text)

    tips = data.get("tips")
    return StuckHelp(
        tips=[str(t) for t in tips] if isinstance(tips, list) else [],
        motivation=str(data.get("motivation") or DEFAULT_MOTIVATION),
    )
