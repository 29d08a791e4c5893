import threading

__all__ = ("SpatialReference",)


def __dir__():
    return __all__


class SpatialReference:
    """An opaque coordinate system descriptor shared between geometries.

    Geometries never own a spatial reference, they only hold a reference to
    it. Attaching one to a geometry increments its reference count, and
    detaching (or destroying the geometry) decrements it again. The creator
    of the descriptor holds the initial reference.

    Parameters
    ----------
    wkt : str, optional
        A textual description of the coordinate system. It is stored as-is
        and never interpreted.
    """

    __slots__ = ("wkt", "_count", "_lock")

    def __init__(self, wkt: str = ""):
        self.wkt = wkt
        self._count = 1
        self._lock = threading.Lock()

    def __repr__(self):
        return f"SpatialReference(wkt={self.wkt!r})"

    @property
    def reference_count(self) -> int:
        """The number of holders currently referencing this descriptor."""
        return self._count

    def reference(self) -> int:
        """Take a reference, returning the new reference count."""
        with self._lock:
            self._count += 1
            return self._count

    def dereference(self) -> int:
        """Release a reference, returning the new reference count."""
        with self._lock:
            if self._count <= 0:
                raise RuntimeError("SpatialReference dereferenced more times than referenced")
            self._count -= 1
            return self._count
