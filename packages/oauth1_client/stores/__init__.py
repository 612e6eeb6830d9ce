"""OAuth state stores."""

from oauth1_client.stores.base import StateStore
from oauth1_client.stores.memory import MemoryStateStore

__all__ = [
    'MemoryStateStore',
    'StateStore',
]
