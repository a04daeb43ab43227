"""TUI (Terminal User Interface) module for llm-unify.

This module provides an interactive terminal browser for the archive.
"""

from llm_unify.tui.app import ConversationBrowser

__all__ = ["ConversationBrowser"]
