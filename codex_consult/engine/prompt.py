"""Prompt composition for Codex consultations."""
from __future__ import annotations


def build_prompt_with_system_context(
    user_prompt: str,
    file_context: str | None,
    system_prompt: str | None,
) -> str:
    """Combine system instructions, file context and the user prompt.

    Sections always appear in that order, each wrapped in its own tag
    and separated by a blank line. Empty sections are left out.
    """
    sections: list[str] = []
    if system_prompt:
        sections.append(
            f"<system_instructions>\n{system_prompt}\n</system_instructions>"
        )
    if file_context:
        sections.append(f"<context_files>\n{file_context}\n</context_files>")
    sections.append(f"<user_task>\n{user_prompt}\n</user_task>")
    return "\n\n".join(sections)
