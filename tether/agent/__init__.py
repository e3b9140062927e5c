"""Agent package — facade, turn loop and supporting pieces."""

from .core import Agent
from .history import build_history, render_messages
from .loop import TurnLoop
from .progress import ProgressJournal, TaskStatus, is_continue_command
from .prompt import build_system_prompt

__all__ = [
    "Agent",
    "TurnLoop",
    "ProgressJournal",
    "TaskStatus",
    "build_history",
    "build_system_prompt",
    "is_continue_command",
    "render_messages",
]
