from .config import ClientSettings
from .session import CryptolClient, connect

__all__ = ["ClientSettings", "CryptolClient", "connect"]
