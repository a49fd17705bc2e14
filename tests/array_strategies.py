from typing import List, Tuple

from hypothesis.strategies import DrawFn, composite, floats, integers, lists

from densearray import DenseArray, UserIndex, UserRanges, UserShape

small_floats = floats(min_value=-100, max_value=100, allow_nan=False)


@composite
def shapes(draw: DrawFn, max_dims: int = 4, max_extent: int = 5) -> UserShape:
    lsize = draw(
        lists(integers(min_value=1, max_value=max_extent), min_size=1, max_size=max_dims)
    )
    return tuple(lsize)


@composite
def indices(draw: DrawFn, shape: UserShape) -> UserIndex:
    return tuple(draw(integers(min_value=0, max_value=s - 1)) for s in shape)


@composite
def ranges(draw: DrawFn, shape: UserShape) -> UserRanges:
    out: List[Tuple[int, int]] = []
    for s in shape:
        begin = draw(integers(min_value=0, max_value=s))
        end = draw(integers(min_value=begin, max_value=s))
        out.append((begin, end))
    return tuple(out)


@composite
def arrays(draw: DrawFn, backend: str = "simple", max_dims: int = 4) -> DenseArray:
    shape = draw(shapes(max_dims=max_dims))
    a = DenseArray(*shape, backend=backend)
    for i in range(a.size):
        a.data[i] = draw(small_floats)
    return a


def naive_fill_range(a: DenseArray, bounds: UserRanges, val: float) -> List[float]:
    "Expected storage after a range fill, computed one element at a time."
    expected = list(a.data)
    for index in a.indices():
        if all(b <= c < e for c, (b, e) in zip(index, bounds)):
            expected[a.index(*index)] = val
    return expected
