"""Fixed, ordered pool of chain API nodes with a round-robin cursor."""
from typing import Iterable, Iterator, List, Optional, Tuple

from src.config.snapshot_settings import get_api_servers
from src.utils.logger import logger


class NodePool:
    """
    Ordered list of node base URLs.

    ``next()`` advances a shared cursor and is meant for sequential callers
    (the paginated fetcher). Concurrent callers use ``pick(index)`` so that
    node assignment follows from a record's position, not shared state.
    No health is tracked: a node that just failed may be handed out again.
    """

    def __init__(self, servers: Iterable[str]):
        self._servers: Tuple[str, ...] = tuple(s.rstrip("/") for s in servers if s and s.strip())
        if not self._servers:
            raise ValueError("NodePool requires at least one server")
        self._cursor = 0

    @classmethod
    def from_settings(cls, servers: Optional[List[str]] = None) -> "NodePool":
        pool = cls(servers if servers is not None else get_api_servers())
        logger.info(f"[NodePool] Configured with {pool.size} node(s)")
        return pool

    @property
    def servers(self) -> Tuple[str, ...]:
        return self._servers

    @property
    def size(self) -> int:
        return len(self._servers)

    def next(self) -> str:
        """Return the node under the cursor and advance it, wrapping at the end."""
        server = self._servers[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._servers)
        return server

    def pick(self, index: int) -> str:
        return self._servers[index % len(self._servers)]

    def __len__(self) -> int:
        return len(self._servers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._servers)
