"""Data models for Prompt Version Manager.

Updates: v0.1.0 - 2026-10-02 - Export prompt aggregate and version dataclasses.
"""

from .prompt_model import (
    BumpKind,
    Prompt,
    PromptCategory,
    PromptContent,
    PromptStatus,
    PromptVersion,
)

__all__ = [
    "BumpKind",
    "Prompt",
    "PromptCategory",
    "PromptContent",
    "PromptStatus",
    "PromptVersion",
]
