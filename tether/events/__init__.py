"""Events package — re-exports EventBus and Handler."""

from .bus import EventBus, Handler

__all__ = ["EventBus", "Handler"]
