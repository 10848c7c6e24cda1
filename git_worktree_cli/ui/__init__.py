"""Interactive prompts and pickers."""

from .prompts import Prompter

__all__ = ["Prompter"]
