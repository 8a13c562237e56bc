"""Turn a short idea description into a product and flow specification."""

import re

from .db import Database
from .llm import Completion
from .models import Idea

IDEA_PROMPT = """You are an expert product strategist and technical architect. Transform the
user's raw idea into a well structured Product & Flow Specification in Markdown.

Follow this outline exactly:

# 🚀 [Product Name]
> [One-line tagline]

---

## 🎯 Goal & Principles
**Mission:** [core mission]
**Guiding Principles:** 3 bullet points

---

## 💡 Core Concepts
A table of | Concept | Description | for the main entities.

---

## 🗺️ App Structure & Navigation
Bullets for each screen with a one-line description.

---

## 🔄 User Flows
Numbered steps per flow, ending with the result.

---

## 📱 Screen Specifications
Header, main content and actions per screen.

---

## ⚙️ Business Rules & Logic
Rules and constraints as bullets.

---

## 🚨 Edge Cases & Error Handling
A table of | Scenario | Handling |.

---

## 🔮 Future Enhancements (V2+)
Bullets.

---

## ✨ Implementation Summary
A quick start checklist (- [ ] items) and a one-line stack recommendation.

Formatting rules:
- Markdown headings with an emoji at the start of each section heading.
- Bullet lists for lists, tables for structured data, numbered lists for steps.
- Horizontal rules between sections, bold for emphasis, short paragraphs.
- No code blocks, setup instructions, package manifests or environment configuration.
- Always write in English, whatever the input language.
- Be specific and actionable, and think about user experience and edge cases."""

HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def generate_idea_document(
    llm, user_input: str, thinking: bool = False, preferred: str | None = None
) -> Completion:
    """Generate the specification document for an idea."""
    if not user_input or not user_input.strip():
        raise ValueError("User input is required")

    prompt = (
        "Transform this idea into a comprehensive Product & Flow Specification:\n\n"
        f"{user_input}"
    )
    return llm.complete(
        IDEA_PROMPT, prompt, max_tokens=8000, temperature=0.7, thinking=thinking, preferred=preferred
    )


def idea_title(markdown: str, user_input: str = "") -> str:
    """Title from the document's first top-level heading, else the input's first line."""
    match = HEADING_RE.search(markdown or "")
    if match:
        title = match.group(1).strip()
        # Drop a leading emoji or symbol run
        title = re.sub(r"^[^\w\[(]+", "", title).strip()
        if title:
            return title[:100]

    first_line = (user_input or "").strip().split("\n")[0].strip()
    return first_line[:100] or "Untitled Idea"


def save_idea(db: Database, user_id: str, user_input: str, markdown: str) -> Idea:
    """Store a generated document and log it in the activity feed."""
    title = idea_title(markdown, user_input)
    idea = db.create_idea(user_id, title, user_input, markdown)
    db.log_activity(user_id, "idea_created", f"Idea: {title}")
    return idea
