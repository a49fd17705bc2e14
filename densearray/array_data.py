from __future__ import annotations

import logging
import random
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Type, Union

import numpy as np
import numpy.typing as npt
from typing_extensions import TypeAlias

from .array_helpers import compute_offset, fill_index
from .array_ops import DEFAULT_BACKEND, ArrayBackend, get_backend
from .operators import prod

logger = logging.getLogger(__name__)

MAX_DIMS = 32

Storage: TypeAlias = Any
Shape: TypeAlias = npt.NDArray[np.int64]
Strides: TypeAlias = npt.NDArray[np.int64]

UserIndex: TypeAlias = Sequence[int]
UserShape: TypeAlias = Sequence[int]
UserStrides: TypeAlias = Sequence[int]
UserRange: TypeAlias = Tuple[int, int]
UserRanges: TypeAlias = Sequence[UserRange]


class IndexingError(RuntimeError):
    "Base class for indexing failures raised by `DenseArray`."


class RankMismatchError(IndexingError, TypeError):
    "Wrong number of extents, coordinates or ranges for the array's rank."


class OutOfRangeError(IndexingError, IndexError):
    "A checked access or fill fell outside the array's extents."


def strides_from_shape(shape: UserShape) -> UserStrides:
    layout = [1]
    offset = 1
    for s in reversed(shape):
        layout.append(s * offset)
        offset = s * offset
    return tuple(reversed(layout[:-1]))


def _is_int(x: Any) -> bool:
    return isinstance(x, (int, np.integer)) and not isinstance(x, (bool, np.bool_))


_RANKED: Dict[Tuple[type, int], type] = {}


class DenseArray:
    """
    Dense row-major array of fixed rank over a single contiguous buffer.

    Element access through `[]`, `get`, `set` and `index` only checks the
    number of coordinates. Coordinates themselves are not range checked,
    use the `checked_*` variants for that. Non-integer coordinates are not
    converted; the backing storage rejects the resulting offset.
    """

    fixed_rank: Optional[int] = None

    _storage: Storage
    shape: Tuple[int, ...]
    dims: int
    size: int
    touched: int

    def __init__(
        self,
        *sizes: int,
        dtype: Any = np.float64,
        backend: Union[str, ArrayBackend, None] = None,
    ):
        self._check_rank(sizes, "extents", type(self).fixed_rank)
        if len(sizes) == 0:
            raise RankMismatchError("Indexing Error: An array needs at least one dimension.")
        if len(sizes) > MAX_DIMS:
            raise RankMismatchError(
                f"Indexing Error: {len(sizes)} dimensions exceeds MAX_DIMS={MAX_DIMS}."
            )
        for s in sizes:
            if not _is_int(s) or s < 0:
                raise IndexingError(
                    f"Indexing Error: Extents {sizes} must be non-negative integers."
                )

        if backend is None:
            backend = DEFAULT_BACKEND
        if isinstance(backend, str):
            backend = get_backend(backend)

        self.backend = backend
        self.dtype = dtype
        self.shape = tuple(int(s) for s in sizes)
        self.dims = len(self.shape)
        self.size = int(prod(self.shape))
        self.touched = 0
        self._storage = backend.allocate(self.size, dtype)
        assert len(self._storage) == self.size
        logger.debug(
            "allocated %s array of shape %s (%d elements) on the %s backend",
            dtype, self.shape, self.size, backend.name,
        )

    @classmethod
    def of_rank(cls, dims: int) -> Type[DenseArray]:
        """
        Array type whose rank is fixed to `dims`.

        Constructing it with any other number of extents raises
        `RankMismatchError` before anything is allocated. Types are cached,
        so `DenseArray.of_rank(3) is DenseArray.of_rank(3)`.
        """
        if not _is_int(dims) or not 1 <= dims <= MAX_DIMS:
            raise RankMismatchError(
                f"Indexing Error: Rank must be between 1 and {MAX_DIMS}, got {dims}."
            )
        if cls.fixed_rank is not None:
            if cls.fixed_rank != dims:
                raise RankMismatchError(
                    f"Indexing Error: {cls.__name__} already has rank {cls.fixed_rank}."
                )
            return cls
        key = (cls, int(dims))
        ranked = _RANKED.get(key)
        if ranked is None:
            ranked = type(f"{cls.__name__}{dims}D", (cls,), {"fixed_rank": int(dims)})
            _RANKED[key] = ranked
        return ranked

    @staticmethod
    def _check_rank(items: Sequence[Any], what: str, dims: Optional[int]) -> None:
        if dims is not None and len(items) != dims:
            raise RankMismatchError(
                f"Indexing Error: Expected {dims} {what}, got {len(items)}: {tuple(items)}."
            )

    def _key(self, key: Union[int, UserIndex]) -> UserIndex:
        if not isinstance(key, tuple):
            key = (key,)
        if len(key) != self.dims:
            raise RankMismatchError(
                f"Indexing Error: Index {key} must be size of {self.shape}."
            )
        return key

    # size information

    def rank(self) -> int:
        return self.dims

    def extent(self, axis: int) -> int:
        return self.shape[axis]

    @property
    def strides(self) -> UserStrides:
        return strides_from_shape(self.shape)

    def __len__(self) -> int:
        return self.size

    # indexing

    def index(self, *coords: int) -> int:
        "Flat storage offset of `coords`. Only the rank is checked."
        self._check_rank(coords, "coordinates", self.dims)
        return compute_offset(coords, strides_from_shape(self.shape))

    def checked_index(self, *coords: int) -> int:
        self._check_rank(coords, "coordinates", self.dims)
        for i, ind in enumerate(coords):
            if not _is_int(ind):
                raise OutOfRangeError(
                    f"Indexing Error: Index {coords} must hold integers."
                )
            if ind < 0:
                raise OutOfRangeError(
                    f"Indexing Error: Negative indexing for {coords} not supported."
                )
            if ind >= self.shape[i]:
                raise OutOfRangeError(
                    f"Indexing Error: Index {coords} out of range {self.shape}."
                )
        return compute_offset(coords, strides_from_shape(self.shape))

    def position(self, flat: int) -> UserIndex:
        "Coordinates of the flat storage offset `flat`. Needs a non-empty array."
        if self.size == 0:
            raise IndexingError(f"Indexing Error: Array of shape {self.shape} is empty.")
        out_index = [0] * self.dims
        fill_index(flat, self.shape, out_index)
        return tuple(out_index)

    def __getitem__(self, key: Union[int, UserIndex]) -> Any:
        return self._storage[self.index(*self._key(key))]

    def __setitem__(self, key: Union[int, UserIndex], val: Any) -> None:
        self._storage[self.index(*self._key(key))] = val

    def get(self, key: Union[int, UserIndex]) -> Any:
        return self[key]

    def set(self, key: Union[int, UserIndex], val: Any) -> None:
        self[key] = val

    def checked_get(self, key: Union[int, UserIndex]) -> Any:
        return self._storage[self.checked_index(*self._key(key))]

    def checked_set(self, key: Union[int, UserIndex], val: Any) -> None:
        self._storage[self.checked_index(*self._key(key))] = val

    # assignment

    def fill(self, val: Any) -> DenseArray:
        self.backend.fill(self._storage, val)
        return self

    def _ranges(self, ranges: UserRanges, checked: bool = False) -> Tuple[UserRange, ...]:
        self._check_rank(ranges, "ranges", self.dims)
        bounds = []
        for axis, r in enumerate(ranges):
            if len(r) != 2:
                raise IndexingError(
                    f"Indexing Error: Range {tuple(r)} must be a (begin, end) pair."
                )
            if checked and not (_is_int(r[0]) and _is_int(r[1])):
                raise OutOfRangeError(
                    f"Indexing Error: Range {tuple(r)} on axis {axis} must hold integers."
                )
            bounds.append((int(r[0]), int(r[1])))
        return tuple(bounds)

    def fill_range(self, ranges: UserRanges, val: Any) -> DenseArray:
        """
        Set every element inside the hyper-rectangle `ranges` to `val`.

        Args:
            ranges : one half-open (begin, end) pair per axis
            val : value to write

        Returns:
            self, so fills can be chained

        The bounds are trusted. Use `checked_fill_range` to validate them.
        """
        bounds = self._ranges(ranges)
        touched = self.backend.fill_range(self._storage, self.shape, self.strides, bounds, val)
        self.touched += touched
        logger.debug("fill_range %s on %s touched %d elements", bounds, self.shape, touched)
        return self

    def checked_fill_range(self, ranges: UserRanges, val: Any) -> DenseArray:
        bounds = self._ranges(ranges, checked=True)
        for axis, (begin, end) in enumerate(bounds):
            if not 0 <= begin <= end <= self.shape[axis]:
                raise OutOfRangeError(
                    f"Indexing Error: Range {(begin, end)} on axis {axis} "
                    f"out of range {self.shape}."
                )
        return self.fill_range(bounds, val)

    # raw access

    @property
    def data(self) -> Storage:
        return self._storage

    def tuple(self) -> Tuple[Storage, Shape, Strides]:
        return (
            self._storage,
            np.array(self.shape, dtype=np.int64),
            np.array(self.strides, dtype=np.int64),
        )

    # iteration and display

    def indices(self) -> Iterable[UserIndex]:
        for i in range(self.size):
            yield self.position(i)

    def sample(self) -> UserIndex:
        if self.size == 0:
            raise IndexingError(f"Indexing Error: Array of shape {self.shape} is empty.")
        return tuple((random.randint(0, s - 1) for s in self.shape))

    def to_string(self) -> str:
        s = ""
        for index in self.indices():
            l = ""
            for i in range(len(index) - 1, -1, -1):
                if index[i] == 0:
                    l = "\n%s[" % ("\t" * i) + l
                else:
                    break
            s += l
            v = self.get(index)
            if isinstance(v, (float, np.floating)):
                s += f"{v:3.2f}"
            else:
                s += str(v)
            l = ""
            for i in range(len(index) - 1, -1, -1):
                if index[i] == self.shape[i] - 1:
                    l += "]"
                else:
                    break
            if l:
                s += l
            else:
                s += " "
        return s

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(shape={self.shape}, dtype={np.dtype(self.dtype).name}, "
            f"backend={self.backend.name!r})"
        )


def make_dense_array(
    *sizes: int,
    dtype: Any = np.float64,
    backend: Union[str, ArrayBackend, None] = None,
) -> DenseArray:
    "Build an array whose type carries the rank inferred from `sizes`."
    if len(sizes) == 0:
        raise RankMismatchError("Indexing Error: An array needs at least one dimension.")
    return DenseArray.of_rank(len(sizes))(*sizes, dtype=dtype, backend=backend)
