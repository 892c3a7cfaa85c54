# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Foreign buffers and the allocator that owns their storage.

A :class:`ForeignBuffer` is the ``{pointer, length, capacity}`` triple that
crosses the boundary. Passing one hands off ownership: whoever receives a
buffer frees it exactly once, through the allocator that produced it.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from udlgen.runtime.errors import BufferOwnershipError

# ###############
# Public Interface
# ###############


@dataclass(frozen=True)
class ForeignBuffer:
    pointer: int
    length: int
    capacity: int


class BufferAllocator:
    """Allocates, tracks and frees buffer storage.

    Pointers are never reused, so a stale :class:`ForeignBuffer` can always be
    told apart from a live one. All methods are thread-safe.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._storage: dict[int, bytearray] = {}
        self._next_pointer = 1

    @property
    def live_buffers(self) -> int:
        """Number of allocated buffers not yet freed."""
        with self._lock:
            return len(self._storage)

    def alloc(self, size: int) -> ForeignBuffer:
        """Allocate a zero-filled buffer of *size* bytes."""
        if size < 0:
            raise ValueError(f"Buffer size must not be negative, got {size}")
        return self._store(bytearray(size))

    def from_bytes(self, data: bytes) -> ForeignBuffer:
        """Allocate a buffer holding a copy of *data*."""
        return self._store(bytearray(data))

    def reserve(self, buf: ForeignBuffer, additional: int) -> ForeignBuffer:
        """Grow the capacity of *buf* by at least *additional* bytes.

        The returned buffer replaces *buf*; its contents are unchanged.
        """
        if additional < 0:
            raise ValueError(f"Cannot reserve a negative number of bytes, got {additional}")
        with self._lock:
            self._require(buf)
            capacity = max(buf.capacity, buf.length + additional)
            return ForeignBuffer(pointer=buf.pointer, length=buf.length, capacity=capacity)

    def read(self, buf: ForeignBuffer) -> bytes:
        """Return the contents of a live buffer without taking ownership."""
        with self._lock:
            data = self._require(buf)
            return bytes(data[: buf.length])

    def free(self, buf: ForeignBuffer) -> None:
        """Release *buf*.

        Raises:
            BufferOwnershipError: If *buf* was already freed or never allocated here.
        """
        with self._lock:
            self._require(buf)
            del self._storage[buf.pointer]

    def _store(self, data: bytearray) -> ForeignBuffer:
        with self._lock:
            pointer = self._next_pointer
            self._next_pointer += 1
            self._storage[pointer] = data
        return ForeignBuffer(pointer=pointer, length=len(data), capacity=len(data))

    def _require(self, buf: ForeignBuffer) -> bytearray:
        data = self._storage.get(buf.pointer)
        if data is None:
            raise BufferOwnershipError(
                f"Buffer at pointer {buf.pointer} is not live (already freed or not allocated by this allocator)"
            )
        return data
