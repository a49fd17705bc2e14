from .array_data import (
    MAX_DIMS,
    DenseArray,
    IndexingError,
    OutOfRangeError,
    RankMismatchError,
    UserIndex,
    UserRange,
    UserRanges,
    UserShape,
    make_dense_array,
    strides_from_shape,
)
from .array_helpers import compute_offset, fill_index
from .array_ops import (
    DEFAULT_BACKEND,
    ArrayBackend,
    ListBackend,
    ListOps,
    SimpleBackend,
    SimpleOps,
    StorageOps,
    available_backends,
    get_backend,
    register_backend,
)
from .fast_ops import FastBackend, FastOps
from .operators import prod

__version__ = "0.1.0"
