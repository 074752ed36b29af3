"""Read-through cache of round match token addresses"""
import logging
from typing import Callable, Optional

from grants_matching.utils.buffers import SharedBuffer

logger = logging.getLogger(__name__)

TokenLoader = Callable[[int, str], Optional[str]]

class RoundTokenCache:
    """
    LRU cache (chain id, round id) -> match token address.

    Entries are never invalidated: a round's match token cannot change after
    creation, so only capacity eviction removes them.
    """

    def __init__(self, loader: TokenLoader, maxsize: int = 500):
        self.loader = loader
        self._cache: SharedBuffer[str] = SharedBuffer(maxsize=maxsize)

    def get(self, chain_id: int, round_id: str) -> Optional[str]:
        key = f"{chain_id}-{round_id}"
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        logger.debug(f"Round token cache miss for {key}")
        token_address = self.loader(chain_id, round_id)
        if token_address is None:
            return None

        self._cache.put(key, token_address)
        return token_address

    def __len__(self) -> int:
        return len(self._cache)
