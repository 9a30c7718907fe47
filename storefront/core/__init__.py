# Core modules

from .config import settings, get_settings, Settings
from .context import CartPhase, ClientContext
from .storage import ClientStorage, FileStorage, MemoryStorage

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "CartPhase",
    "ClientContext",
    "ClientStorage",
    "FileStorage",
    "MemoryStorage",
]
