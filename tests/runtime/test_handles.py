# Copyright 2026 UDLGen Contributors
# SPDX-License-Identifier: Apache-2.0

"""Tests for object handle maps and binding-side handle owners."""

import gc

import pytest

from udlgen.runtime.errors import StaleHandleError
from udlgen.runtime.handles import HandleMap, ObjectHandle


class TestHandleMap:
    def test_handles_are_non_zero_and_unique(self) -> None:
        handles: HandleMap[str] = HandleMap()
        a = handles.insert("a")
        b = handles.insert("b")
        assert a != 0 and b != 0
        assert a != b
        assert handles.get(a) == "a"
        assert len(handles) == 2

    def test_release_returns_object_at_zero(self) -> None:
        handles: HandleMap[str] = HandleMap()
        h = handles.insert("obj")
        assert handles.release(h) == "obj"
        assert len(handles) == 0

    def test_clone_adds_reference(self) -> None:
        handles: HandleMap[str] = HandleMap()
        h = handles.insert("obj")
        assert handles.clone(h) == h
        assert handles.release(h) is None
        assert handles.get(h) == "obj"
        assert handles.release(h) == "obj"

    def test_stale_handle(self) -> None:
        handles: HandleMap[str] = HandleMap()
        h = handles.insert("obj")
        handles.release(h)
        with pytest.raises(StaleHandleError, match=f"Handle {h} is not live"):
            handles.get(h)
        with pytest.raises(StaleHandleError):
            handles.release(h)

    def test_handles_not_reused(self) -> None:
        handles: HandleMap[str] = HandleMap()
        first = handles.insert("a")
        handles.release(first)
        assert handles.insert("b") != first


class TestObjectHandle:
    def test_close_frees_once(self) -> None:
        freed: list[int] = []
        owner = ObjectHandle(5, freed.append)
        assert owner.handle == 5
        owner.close()
        owner.close()
        assert freed == [5]
        assert owner.closed

    def test_handle_unusable_after_close(self) -> None:
        owner = ObjectHandle(5, lambda h: None)
        owner.close()
        with pytest.raises(StaleHandleError):
            _ = owner.handle

    def test_context_manager(self) -> None:
        freed: list[int] = []
        with ObjectHandle(9, freed.append) as owner:
            assert not owner.closed
        assert freed == [9]

    def test_garbage_collection_frees(self) -> None:
        freed: list[int] = []
        owner = ObjectHandle(3, freed.append)
        del owner
        gc.collect()
        assert freed == [3]

    def test_zero_handle_rejected(self) -> None:
        with pytest.raises(StaleHandleError):
            ObjectHandle(0, lambda h: None)

    def test_round_trip_with_map(self) -> None:
        handles: HandleMap[object] = HandleMap()
        instance = object()
        with ObjectHandle(handles.insert(instance), handles.release) as owner:
            assert handles.get(owner.handle) is instance
        assert len(handles) == 0
