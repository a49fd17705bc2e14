from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
from numba import njit, prange

from .array_data import MAX_DIMS
from .array_ops import ArrayBackend, StorageOps, register_backend

if TYPE_CHECKING:
    from typing import Any, Sequence, Tuple

    from .array_ops import FillRangeProto

_NUMERIC_KINDS = "biufc"


# Helper functions for njit kernels.
@njit
def fill_index(flat: int, shape: np.ndarray, out_index: np.ndarray) -> None:
    cur = flat
    for idx in range(len(shape) - 1, -1, -1):
        sh = shape[idx]
        out_index[idx] = int(cur % sh)
        cur //= sh


@njit
def compute_position(index: np.ndarray, strides: np.ndarray) -> int:
    pos = 0
    for i in range(len(index)):
        pos += index[i] * strides[i]
    return pos


class FastOps(StorageOps):
    "Numpy buffers with numba-compiled fill kernels. Numeric dtypes only."

    compiled = True

    @staticmethod
    def allocate(size: int, dtype: Any) -> np.ndarray:
        dt = np.dtype(dtype)
        if dt.kind not in _NUMERIC_KINDS:
            raise TypeError(f"The fast backend needs a numeric dtype, got {dt}")
        return np.zeros(size, dtype=dt)

    @staticmethod
    def fill(storage: np.ndarray, value: Any) -> None:
        array_fill(storage, storage.dtype.type(value))

    @staticmethod
    def fill_span(storage: np.ndarray, begin: int, end: int, value: Any) -> None:
        storage[begin:end] = value

    @classmethod
    def range_filler(cls) -> FillRangeProto:
        def ret(
            storage: np.ndarray,
            shape: Sequence[int],
            strides: Sequence[int],
            ranges: Sequence[Tuple[int, int]],
            value: Any,
        ) -> int:
            return array_fill_range(
                storage,
                np.array(shape, dtype=np.int64),
                np.array(strides, dtype=np.int64),
                np.array(ranges, dtype=np.int64).reshape(len(shape), 2),
                storage.dtype.type(value),
            )
        return ret


# Low-level ops implementations.
def _array_fill(out: np.ndarray, value: Any) -> None:
    for i in prange(len(out)):
        out[i] = value


def _array_fill_range(
    out: np.ndarray,
    out_shape: np.ndarray,
    out_strides: np.ndarray,
    ranges: np.ndarray,
    value: Any,
) -> int:
    dims = len(out_shape)
    last = dims - 1

    # Extents of the outer axes; the last axis is written as one span.
    outer_shape = np.zeros(MAX_DIMS, np.int64)
    outer = 1
    for k in range(last):
        n = ranges[k, 1] - ranges[k, 0]
        if n < 0:
            n = 0
        outer_shape[k] = n
        outer *= n
    inner = ranges[last, 1] - ranges[last, 0]
    if inner < 0:
        inner = 0

    for i in prange(outer):
        out_index = np.zeros(MAX_DIMS, np.int64)
        fill_index(i, outer_shape[:last], out_index)
        for k in range(last):
            out_index[k] += ranges[k, 0]
        out_index[last] = ranges[last, 0]
        start = compute_position(out_index[:dims], out_strides)
        out[start:start + inner] = value
    return outer * inner


array_fill = njit(parallel=True)(_array_fill)
array_fill_range = njit(parallel=True)(_array_fill_range)

FastBackend = register_backend(ArrayBackend(FastOps, "fast"))
