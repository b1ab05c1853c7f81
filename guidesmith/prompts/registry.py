from __future__ import annotations

import os
from pathlib import Path
from typing import Tuple


ROOT = Path(__file__).resolve().parent

TASKS = (
    "clarifying_questions",
    "research_plan",
    "outline",
    "write_section",
    "scope_from_chat",
)


def load(namespace: str, name: str) -> str:
    """Load a prompt file from the prompts directory.

    Args:
        namespace: Subdirectory name (e.g., 'outline')
        name: File name (e.g., 'system_v1.md')

    Returns:
        Prompt text as string

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    p = ROOT / namespace / name
    if not p.exists():
        raise FileNotFoundError(f"Prompt not found: {p}")
    return p.read_text(encoding="utf-8").strip()


def get_prompts(task: str, version: str | None = None) -> Tuple[str, str]:
    """Get the system prompt and user prompt template for a generation task.

    Args:
        task: One of ``TASKS``
        version: Prompt version (defaults to "v1" or PROMPTS_<TASK>_VERSION env var)

    Returns:
        Tuple of (system_prompt, user_template). The user template is filled
        with ``str.format``.
    """
    if task not in TASKS:
        raise KeyError(f"Unknown prompt task: {task}")
    if version is None:
        version = os.getenv(f"PROMPTS_{task.upper()}_VERSION", "v1")
    return load(task, f"system_{version}.md"), load(task, f"user_{version}.md")


def render(task: str, version: str | None = None, **values: str) -> Tuple[str, str]:
    """Return ``(system_prompt, user_prompt)`` with the user template filled in."""
    system_prompt, user_template = get_prompts(task, version)
    return system_prompt, user_template.format(**values)
