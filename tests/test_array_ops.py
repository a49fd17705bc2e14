from typing import Any

import pytest
from hypothesis import given
from hypothesis.strategies import DataObject, data, sampled_from

from densearray import (
    ArrayBackend,
    DenseArray,
    ListOps,
    SimpleOps,
    StorageOps,
    available_backends,
    compute_offset,
    fill_index,
    get_backend,
    prod,
)
from densearray.array_ops import array_fill_range

from .array_strategies import arrays, naive_fill_range, ranges


class ByteOps(StorageOps):
    "A bytearray backend, to exercise the storage interface from outside."

    @staticmethod
    def allocate(size: int, dtype: Any) -> bytearray:
        return bytearray(size)

    @staticmethod
    def fill(storage: bytearray, value: Any) -> None:
        storage[:] = bytes([value]) * len(storage)

    @staticmethod
    def fill_span(storage: bytearray, begin: int, end: int, value: Any) -> None:
        storage[begin:end] = bytes([value]) * (end - begin)


ByteBackend = ArrayBackend(ByteOps, "bytes")


def test_registry() -> None:
    assert {"list", "simple", "fast"} <= set(available_backends())
    assert get_backend("simple").name == "simple"
    with pytest.raises(KeyError):
        get_backend("missing")


def test_default_backend() -> None:
    assert DenseArray(2).backend is get_backend("simple")


def test_list_allocate_zero_value() -> None:
    assert ListOps.allocate(3, float) == [0.0, 0.0, 0.0]
    assert ListOps.allocate(2, int) == [0, 0]
    assert ListOps.allocate(0, float) == []


def test_list_fill_span_keeps_length() -> None:
    storage = ListOps.allocate(5, int)
    ListOps.fill_span(storage, 3, 8, 1)
    assert storage == [0, 0, 0, 1, 1]
    ListOps.fill_span(storage, 2, 1, 7)
    assert storage == [0, 0, 0, 1, 1]


def test_simple_ops() -> None:
    storage = SimpleOps.allocate(4, "int32")
    SimpleOps.fill(storage, 2)
    SimpleOps.fill_span(storage, 1, 3, 5)
    assert storage.tolist() == [2, 5, 5, 2]


def test_storage_ops_is_abstract() -> None:
    with pytest.raises(NotImplementedError):
        StorageOps.allocate(1, float)


def test_custom_backend() -> None:
    a = DenseArray(3, 4, backend=ByteBackend)
    assert isinstance(a.data, bytearray)
    a.fill(1)
    a.fill_range(((1, 3), (1, 3)), 7)
    a[0, 3] = 9
    assert bytes(a.data) == bytes([1, 1, 1, 9, 1, 7, 7, 1, 1, 7, 7, 1])
    assert a.touched == 4
    assert len(a.data) == 12


def test_array_fill_range_direct() -> None:
    calls = []

    def fill_span(storage: Any, begin: int, end: int, value: Any) -> None:
        calls.append((begin, end))

    touched = array_fill_range(fill_span)(None, (4, 5, 6), (30, 6, 1), ((1, 3), (0, 2), (2, 6)), 0)
    # One bulk write per outer coordinate pair, none per element.
    assert calls == [(32, 36), (38, 42), (62, 66), (68, 72)]
    assert touched == 16


@given(data())
def test_fill_range_matches_naive(d: DataObject) -> None:
    backend = d.draw(sampled_from(["list", "simple", "fast"]))
    a = d.draw(arrays(backend=backend))
    bounds = d.draw(ranges(a.shape))
    expected = naive_fill_range(a, bounds, 42.0)

    a.fill_range(bounds, 42.0)
    assert list(a.data) == expected
    assert a.touched == prod(e - b for b, e in bounds)


def test_helpers() -> None:
    out = [0, 0, 0]
    fill_index(23, (2, 3, 4), out)
    assert out == [1, 2, 3]
    assert compute_offset((1, 2, 3), (12, 4, 1)) == 23
