"""Host execution bridge package."""

from .host import DEFAULT_TIMEOUT, HostBridge, HostSignal, ToolExecutionRequest
from .threaded import ThreadedHost

__all__ = ["DEFAULT_TIMEOUT", "HostBridge", "HostSignal", "ToolExecutionRequest", "ThreadedHost"]
