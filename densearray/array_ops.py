from __future__ import annotations

from typing import Any, Dict, Iterator, List, Sequence, Tuple, Type

import numpy as np
from typing_extensions import Protocol

from .array_helpers import compute_offset
from .operators import clamp_span

DEFAULT_BACKEND = "simple"


class ContiguousStorage(Protocol):
    """
    What a backing buffer has to offer: a length, iteration and
    positional reads and writes.
    """

    def __len__(self) -> int:
        ...

    def __iter__(self) -> Iterator[Any]:
        ...

    def __getitem__(self, i: Any) -> Any:
        ...

    def __setitem__(self, i: Any, value: Any) -> None:
        ...


class FillSpanProto(Protocol):
    def __call__(self, storage: Any, begin: int, end: int, value: Any) -> None:
        ...


class FillRangeProto(Protocol):
    def __call__(
        self,
        storage: Any,
        shape: Sequence[int],
        strides: Sequence[int],
        ranges: Sequence[Tuple[int, int]],
        value: Any,
    ) -> int:
        ...


class StorageOps:
    @staticmethod
    def allocate(size: int, dtype: Any) -> ContiguousStorage:
        raise NotImplementedError("Storage backends must implement allocate")

    @staticmethod
    def fill(storage: Any, value: Any) -> None:
        raise NotImplementedError("Storage backends must implement fill")

    @staticmethod
    def fill_span(storage: Any, begin: int, end: int, value: Any) -> None:
        raise NotImplementedError("Storage backends must implement fill_span")

    @classmethod
    def range_filler(cls) -> FillRangeProto:
        "Region fill built on this backend's contiguous span fill."
        return array_fill_range(cls.fill_span)

    compiled = False


class ArrayBackend:
    def __init__(self, ops: Type[StorageOps], name: str):
        """
        Bundle the storage primitives of a `StorageOps` class into the
        backend object a `DenseArray` holds on to.

        Args:
            ops : storage operations class, see `ListOps` and `SimpleOps`
            name : registry name of the backend

        Returns :
            A collection of storage functions
        """
        self.name = name
        self.allocate = ops.allocate
        self.fill = ops.fill
        self.fill_span = ops.fill_span
        self.fill_range = ops.range_filler()
        self.compiled = ops.compiled

    def __repr__(self) -> str:
        return f"ArrayBackend({self.name!r})"


def _zero_of(dtype: Any) -> Any:
    # np.zeros knows the zero of every dtype, including object and str
    return np.zeros(1, dtype=dtype).tolist()[0]


class ListOps(StorageOps):
    "Plain Python lists as backing storage."

    @staticmethod
    def allocate(size: int, dtype: Any) -> List[Any]:
        return [_zero_of(dtype)] * size

    @staticmethod
    def fill(storage: List[Any], value: Any) -> None:
        storage[:] = [value] * len(storage)

    @staticmethod
    def fill_span(storage: List[Any], begin: int, end: int, value: Any) -> None:
        # Slice assignment on a list can grow it, keep the length fixed.
        start, stop, _ = slice(begin, end).indices(len(storage))
        storage[start:stop] = [value] * clamp_span(start, stop)


class SimpleOps(StorageOps):
    "Numpy buffers, region fill driven from Python."

    @staticmethod
    def allocate(size: int, dtype: Any) -> np.ndarray:
        return np.zeros(size, dtype=dtype)

    @staticmethod
    def fill(storage: np.ndarray, value: Any) -> None:
        storage[:] = value

    @staticmethod
    def fill_span(storage: np.ndarray, begin: int, end: int, value: Any) -> None:
        storage[begin:end] = value


# Low-level implementations.
def array_fill_range(fill_span: FillSpanProto) -> FillRangeProto:
    """
    Low-level implementation of the rectangular range fill.

    Walks the outer axes recursively, fixing one coordinate per level. The
    last axis is contiguous in row-major order, so instead of looping it
    hands the whole [begin, end) run to `fill_span` at once.
    """
    def _fill_range(
        storage: Any,
        shape: Sequence[int],
        strides: Sequence[int],
        ranges: Sequence[Tuple[int, int]],
        value: Any,
    ) -> int:
        last = len(shape) - 1
        index = [0] * len(shape)

        def _assign(level: int) -> int:
            begin, end = ranges[level]
            if level == last:
                index[last] = begin
                start = compute_offset(index, strides)
                count = clamp_span(begin, end)
                fill_span(storage, start, start + count, value)
                return count
            touched = 0
            for i in range(begin, end):
                index[level] = i
                touched += _assign(level + 1)
            return touched

        return _assign(0)
    return _fill_range


_BACKENDS: Dict[str, ArrayBackend] = {}


def register_backend(backend: ArrayBackend) -> ArrayBackend:
    _BACKENDS[backend.name] = backend
    return backend


def get_backend(name: str) -> ArrayBackend:
    try:
        return _BACKENDS[name]
    except KeyError:
        raise KeyError(
            f"Unknown storage backend {name!r}, expected one of {sorted(_BACKENDS)}"
        ) from None


def available_backends() -> List[str]:
    return sorted(_BACKENDS)


ListBackend = register_backend(ArrayBackend(ListOps, "list"))
SimpleBackend = register_backend(ArrayBackend(SimpleOps, "simple"))
