"""Weight tables for the n-tuple network and their binary weight file.

File layout, host byte order::

    uint32 table_count
    repeated table_count times:
        uint64 length
        float32[length]
"""

import logging
import re
from typing import List, Sequence, Tuple

import numpy as np

logger = logging.getLogger(__name__)


class WeightFileError(OSError):
    """A weight file could not be read or written completely."""


class WeightStore:
    dtype = np.float32

    def __init__(self, sizes: Sequence[int] = ()):
        self._allocate(sizes)

    @classmethod
    def from_sizes(cls, info: str) -> "WeightStore":
        """Build zeroed tables from a size list such as ``"65536,65536"``."""
        return cls([int(s) for s in re.findall(r"\d+", info)])

    @classmethod
    def from_file(cls, path: str) -> "WeightStore":
        store = cls()
        store.load(path)
        return store

    def _allocate(self, sizes: Sequence[int], values: Sequence[np.ndarray] = ()) -> None:
        sizes = tuple(int(s) for s in sizes)
        if any(s <= 0 for s in sizes):
            raise ValueError(f"table sizes must be positive: {sizes}")

        self.sizes: Tuple[int, ...] = sizes
        self.offsets: Tuple[int, ...] = tuple(int(o) for o in np.cumsum((0,) + sizes)[:-1])
        # all tables are views into one buffer so an address set spans tables
        self.buffer: np.ndarray = np.zeros(sum(sizes), dtype=self.dtype)
        self.tables: List[np.ndarray] = [
            self.buffer[o:o + s] for o, s in zip(self.offsets, self.sizes)
        ]
        for table, value in zip(self.tables, values):
            table[:] = value

    def __len__(self) -> int:
        return len(self.tables)

    def __getitem__(self, i: int) -> np.ndarray:
        return self.tables[i]

    def address(self, table: int, index: int) -> int:
        """Flat buffer address of slot ``index`` in ``table``."""
        assert 0 <= index < self.sizes[table], f"index {index} out of range for table {table}"
        return self.offsets[table] + index

    def load(self, path: str) -> None:
        """Replace the tables with the contents of ``path``.

        If tables were already declared, the file must match their sizes.
        """
        try:
            with open(path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise WeightFileError(f"cannot open weight file {path}: {e}") from e

        pos = 0

        def take(dtype, count: int) -> np.ndarray:
            nonlocal pos
            nbytes = np.dtype(dtype).itemsize * count
            if pos + nbytes > len(data):
                raise WeightFileError(f"weight file {path} is truncated at byte {pos}")
            chunk = np.frombuffer(data, dtype=dtype, count=count, offset=pos)
            pos += nbytes
            return chunk

        count = int(take(np.uint32, 1)[0])
        sizes, values = [], []
        for _ in range(count):
            length = int(take(np.uint64, 1)[0])
            sizes.append(length)
            values.append(take(self.dtype, length))
        if pos != len(data):
            raise WeightFileError(f"weight file {path} has {len(data) - pos} trailing bytes")
        if self.sizes and tuple(sizes) != self.sizes:
            raise WeightFileError(f"weight file {path} holds tables {tuple(sizes)}, expected {self.sizes}")

        self._allocate(sizes, values)
        logger.info(f"Loaded {count} weight tables ({sum(sizes)} weights) from {path}")

    def save(self, path: str) -> None:
        try:
            with open(path, "wb") as f:
                f.write(np.uint32(len(self.tables)).tobytes())
                for table in self.tables:
                    f.write(np.uint64(table.size).tobytes())
                    f.write(np.ascontiguousarray(table, dtype=self.dtype).tobytes())
        except OSError as e:
            raise WeightFileError(f"cannot write weight file {path}: {e}") from e
        logger.info(f"Saved {len(self.tables)} weight tables to {path}")
