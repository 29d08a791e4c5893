import inspect
import sys
from contextlib import contextmanager

from wkgeom import (
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)


@contextmanager
def max_call_depth(n):
    cur_depth = len(inspect.stack(0))
    orig = sys.getrecursionlimit()
    try:
        # Our measure of the current stack depth can be off by a bit. Trying to
        # set a recursionlimit < the current depth will raise a RecursionError.
        # We just try again with a slightly higher limit, bailing after an
        # unreasonable amount of adjustments.
        for i in range(64):
            try:
                sys.setrecursionlimit(cur_depth + i + n)
                break
            except RecursionError:
                pass
        else:
            raise ValueError("Failed to set low recursion limit, something is wrong here")
        yield
    finally:
        sys.setrecursionlimit(orig)


def square(x0, y0, size):
    x1, y1 = x0 + size, y0 + size
    return LinearRing([(x0, y0), (x1, y0), (x1, y1), (x0, y1), (x0, y0)])


# One or more examples of every geometry kind, used by the round trip tests
EXAMPLES = [
    Point(30, 10),
    Point(1.5, -2.25, 3.0),
    LineString([(30, 10), (10, 30), (40, 40)]),
    LineString([(1, 2, 3), (4, 5, 6)]),
    LineString(),
    Polygon([square(0, 0, 4)]),
    Polygon([square(0, 0, 10), square(1, 1, 2), square(5, 5, 2)]),
    Polygon(),
    MultiPoint([Point(10, 40), Point(40, 30), Point(20, 20)]),
    MultiPoint(),
    MultiLineString(
        [LineString([(10, 10), (20, 20)]), LineString([(40, 40), (30, 30), (40, 20)])]
    ),
    MultiPolygon([Polygon([square(0, 0, 4)]), Polygon([square(10, 10, 4), square(11, 11, 1)])]),
    GeometryCollection(
        [
            Point(4, 6),
            LineString([(4, 6), (7, 10)]),
            MultiPoint([Point(0.125, 1e-07)]),
            GeometryCollection([Polygon([square(-5, -5, 1)])]),
            GeometryCollection(),
        ]
    ),
    GeometryCollection(),
]
