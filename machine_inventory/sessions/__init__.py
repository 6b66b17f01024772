from .base import Session, SessionProvider
from .winrm_session import WinRMSession, WinRMSessionProvider

__all__ = [
    "Session",
    "SessionProvider",
    "WinRMSession",
    "WinRMSessionProvider",
]
