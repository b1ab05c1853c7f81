"""Markdown rendering for compiled documents."""

from datetime import datetime, timezone
from typing import List


def render_document(title: str, sections: List[str], pending: List[str]) -> str:
    """
    Render the combined document from drafted sections.

    Sections are included verbatim in outline order. Outline entries without a
    completed draft are listed at the end.
    """
    lines = []

    # Title
    lines.append(f"# {title}")
    lines.append("")
    lines.append(f"*Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M:%S UTC')}*")
    lines.append("")

    for section in sections:
        lines.append(section.strip())
        lines.append("")

    if pending:
        lines.append("---")
        lines.append("## Pending sections")
        lines.append("")
        for section_title in pending:
            lines.append(f"- {section_title}")
        lines.append("")

    return "\n".join(lines)
