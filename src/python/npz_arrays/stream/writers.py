# npz_arrays/stream/writers.py
"""
Buffered writers that grow a single-array file in batches.
"""
import logging
from typing import List, Optional

import numpy as np

from ..lowlevel import PathLike
from ..npy import save_array
from ..types import Mode

logger = logging.getLogger(__name__)


class BufferedAppender:
    """
    Accumulates rows in memory and appends them to an array file in batches.

    Every array passed to `append` must share the dtype and trailing
    dimensions of the first; they are stacked along the leading dimension.

    Usage:
        with BufferedAppender("prices.npy", target_chunk_bytes=1 << 20) as out:
            for batch in feed:
                out.append(batch)
    """
    def __init__(
            self,
            path: PathLike,
            *,
            target_chunk_bytes: int = 4 * 1024 * 1024,
            mode: Mode | str = Mode.CREATE,
    ):
        if target_chunk_bytes <= 0:
            raise ValueError("target_chunk_bytes must be positive.")
        self.path = path
        self.target_chunk_bytes = target_chunk_bytes
        self._next_mode = Mode.parse(mode)

        self._buffer: List[np.ndarray] = []
        self._buffered_bytes: int = 0
        self._rows_written: int = 0
        self._closed = False

    @property
    def rows_written(self) -> int:
        """Rows already flushed to disk."""
        return self._rows_written

    def append(self, data: np.ndarray) -> None:
        """Appends an array to the buffer, flushing to disk if the buffer is full."""
        if self._closed:
            raise ValueError("Cannot append to a closed appender.")

        data = np.asarray(data)
        if data.ndim == 0:
            raise ValueError("Cannot append a 0-d array; it has no leading dimension.")
        if self._buffer:
            first = self._buffer[0]
            if data.dtype != first.dtype or data.shape[1:] != first.shape[1:]:
                raise ValueError(
                    f"Appended array ({data.dtype}, trailing shape {data.shape[1:]}) does "
                    f"not match the buffered data ({first.dtype}, {first.shape[1:]})."
                )

        self._buffer.append(data)
        self._buffered_bytes += data.nbytes

        if self._buffered_bytes >= self.target_chunk_bytes:
            self.flush()

    def flush(self) -> Optional[int]:
        """Writes buffered rows to disk. Returns the number of rows written."""
        if not self._buffer:
            return None
        full_chunk = np.ascontiguousarray(np.concatenate(self._buffer))
        save_array(self.path, full_chunk, mode=self._next_mode)
        self._next_mode = Mode.APPEND

        rows = full_chunk.shape[0]
        self._rows_written += rows
        logger.debug("Flushed %d rows (%d bytes) to %s.", rows, self._buffered_bytes, self.path)
        self._buffer.clear()
        self._buffered_bytes = 0
        return rows

    def close(self) -> None:
        if not self._closed:
            self.flush()
            self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "BufferedAppender": return self
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._closed = True
