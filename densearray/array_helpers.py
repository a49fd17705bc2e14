from typing import MutableSequence, Sequence


def fill_index(flat_index: int, shape: Sequence[int], out_index: MutableSequence[int]) -> None:
    "Write the row-major coordinates of `flat_index` into `out_index`. Every extent must be positive."
    cur = flat_index
    for axis in range(len(shape) - 1, -1, -1):
        cur, out_index[axis] = divmod(cur, shape[axis])


def compute_offset(index: Sequence[int], strides: Sequence[int]) -> int:
    """
    Flat offset of the coordinates `index`: the sum of coordinate times
    stride over every axis. Coordinates are used as given, so a float
    coordinate yields a float offset that no storage accepts.
    """
    offset = 0
    for coord, stride in zip(index, strides):
        offset += coord * stride
    return offset
