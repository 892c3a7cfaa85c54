# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Object handles.

Objects never cross the boundary by value. The owning side keeps each
instance in a :class:`HandleMap` and hands out an opaque non-zero ``u64``;
the other side wraps that number in an :class:`ObjectHandle` which releases
it exactly once.
"""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from udlgen.runtime.errors import StaleHandleError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ###############
# Public Interface
# ###############


class HandleMap(Generic[T]):
    """Thread-safe, reference-counted map from handles to live objects."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[int, _Entry[T]] = {}
        self._next_handle = 1

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def insert(self, obj: T) -> int:
        """Store *obj* with a reference count of one and return its handle."""
        with self._lock:
            handle = self._next_handle
            self._next_handle += 1
            self._entries[handle] = _Entry(obj)
        return handle

    def get(self, handle: int) -> T:
        with self._lock:
            return self._require(handle).obj

    def clone(self, handle: int) -> int:
        """Add a reference to *handle* and return it."""
        with self._lock:
            self._require(handle).refcount += 1
        return handle

    def release(self, handle: int) -> T | None:
        """Drop one reference. Returns the object once the last reference is gone."""
        with self._lock:
            entry = self._require(handle)
            entry.refcount -= 1
            if entry.refcount > 0:
                return None
            del self._entries[handle]
        logger.debug("Released handle %d", handle)
        return entry.obj

    def _require(self, handle: int) -> _Entry[T]:
        entry = self._entries.get(handle)
        if entry is None:
            raise StaleHandleError(f"Handle {handle} is not live")
        return entry


class ObjectHandle:
    """Binding-side owner of one object handle.

    Call :meth:`close` (or use the instance as a context manager) to release
    the handle deterministically. If the owner is garbage collected first, the
    handle is released then; it is never released twice.
    """

    def __init__(self, handle: int, free: Callable[[int], None]) -> None:
        if handle == 0:
            raise StaleHandleError("Handle 0 is never valid")
        self._handle = handle
        self._finalizer = weakref.finalize(self, free, handle)

    @property
    def handle(self) -> int:
        if not self._finalizer.alive:
            raise StaleHandleError(f"Handle {self._handle} has been closed")
        return self._handle

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    def close(self) -> None:
        self._finalizer()

    def __enter__(self) -> ObjectHandle:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ################
# Implementation
# ################


@dataclass
class _Entry(Generic[T]):
    obj: T
    refcount: int = 1
