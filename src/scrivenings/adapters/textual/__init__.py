"""Textual adapter: controller bridging a session to Textual widgets."""

from .controller import TextualScriveningsAdapter, TextualUIHooks, diff_change

__all__ = ["TextualScriveningsAdapter", "TextualUIHooks", "diff_change"]
