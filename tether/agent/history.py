"""Render session messages into the provider-neutral request history."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from ..types import Message, Role

logger = logging.getLogger(__name__)

DEFAULT_CHAR_BUDGET = 450_000

TRIM_NOTICE = "[Earlier conversation history was trimmed to stay within context limits]"
TRIM_ACK = "Understood. I'll continue based on the recent conversation context."

# Room left for the notice pair
_NOTICE_RESERVE = 200


def render_messages(messages: Iterable[Message]) -> list[dict[str, Any]]:
    """Plain ``{role, content}`` pairs. System notices and empty turns are dropped."""
    rendered: list[dict[str, Any]] = []
    for msg in messages:
        if msg.role == Role.SYSTEM or not msg.content:
            continue
        rendered.append({"role": str(msg.role), "content": msg.content})
    return rendered


def history_size(history: list[dict[str, Any]]) -> int:
    return sum(len(m["content"]) for m in history if isinstance(m.get("content"), str))


def build_history(messages: Iterable[Message], char_budget: int = DEFAULT_CHAR_BUDGET) -> list[dict[str, Any]]:
    """Sliding window over the session.

    When the rendered history outgrows ``char_budget`` the first message is
    kept for the original context, a trimmed-history notice pair follows, and
    then as many of the most recent messages as still fit. The newest message
    is always kept.
    """
    rendered = render_messages(messages)
    if len(rendered) <= 2:
        return rendered

    total = history_size(rendered)
    if total <= char_budget:
        return rendered

    first = rendered[0]
    budget = char_budget - len(first["content"]) - _NOTICE_RESERVE
    recent: list[dict[str, Any]] = []
    for item in reversed(rendered[1:]):
        size = len(item["content"])
        if recent and budget - size < 0:
            break
        budget -= size
        recent.append(item)
    recent.reverse()

    trimmed = [
        first,
        {"role": "user", "content": TRIM_NOTICE},
        {"role": "assistant", "content": TRIM_ACK},
        *recent,
    ]
    logger.info(
        "History trimmed from %d to %d messages (%d chars over budget)",
        len(rendered), len(trimmed), total - char_budget,
    )
    return trimmed
