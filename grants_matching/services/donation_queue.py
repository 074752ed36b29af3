"""In-memory donation buffer flushed to the database in chunks"""
import logging
from typing import Any, Callable, Dict, List

from grants_matching.utils.buffers import SharedBuffer

logger = logging.getLogger(__name__)

ChunkWriter = Callable[[List[Dict[str, Any]]], None]

DEFAULT_CHUNK_SIZE = 1_000

class DonationBatchQueue:
    """
    Buffers donation rows and writes them in bulk.

    Durability is at most once: rows enqueued but not yet flushed are lost
    if the process dies. Call flush() on shutdown to write what is queued.
    Rows of one flush are written in enqueue order; there is no ordering
    guarantee relative to other writers of the donations table.
    """

    def __init__(self, write_chunk: ChunkWriter, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.write_chunk = write_chunk
        self.chunk_size = chunk_size
        self._buffer: SharedBuffer[Dict[str, Any]] = SharedBuffer()

    def enqueue(self, donation: Dict[str, Any]) -> None:
        self._buffer.append(donation)

    def chunks(self, donations: List[Dict[str, Any]]) -> List[List[Dict[str, Any]]]:
        return [
            donations[i:i + self.chunk_size]
            for i in range(0, len(donations), self.chunk_size)
        ]

    def flush(self) -> int:
        """
        Swap out the queued donations and write them chunk by chunk.

        Returns:
            Number of donations taken from the queue

        Raises:
            Whatever the chunk writer raises; chunks after the failing one are
            not written
        """
        donations = self._buffer.drain()
        if not donations:
            return 0

        chunks = self.chunks(donations)
        for index, chunk in enumerate(chunks):
            try:
                self.write_chunk(chunk)
            except Exception as e:
                lost = len(donations) - index * self.chunk_size
                logger.error(f"Failed to write donation chunk {index + 1}/{len(chunks)}, {lost} donations dropped: {e}")
                raise

        logger.info(f"Flushed {len(donations)} donations in {len(chunks)} chunks")
        return len(donations)

    def __len__(self) -> int:
        return len(self._buffer)
