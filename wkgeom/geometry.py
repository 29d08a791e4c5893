"""The in-memory geometry model.

Every geometry kind is a `msgspec.Struct`. Structs compare structurally, so
two geometries are equal if they are of the same kind, with the same
coordinates, nesting, and spatial reference.

Ownership is single and explicit: a polygon owns its rings and a collection
owns its members. The optional spatial reference is shared, and is held by
reference count (see `SpatialReference`). Use `assign_spatial_reference`
rather than setting ``srs`` directly so the count stays balanced.
"""
import enum
from typing import ClassVar, List, Optional, Tuple

import msgspec

from ._errors import UnsupportedGeometryType
from .srs import SpatialReference

__all__ = (
    "Coordinate",
    "GeometryType",
    "Geometry",
    "Point",
    "LineString",
    "LinearRing",
    "Polygon",
    "GeometryCollection",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
    "flatten",
)


def __dir__():
    return __all__


#: A single vertex, either ``(x, y)`` or ``(x, y, z)``.
Coordinate = Tuple[float, ...]


class GeometryType(enum.IntEnum):
    """The base WKB type codes."""

    POINT = 1
    LINESTRING = 2
    POLYGON = 3
    MULTIPOINT = 4
    MULTILINESTRING = 5
    MULTIPOLYGON = 6
    GEOMETRYCOLLECTION = 7


# Extension flags that may be set in the high bits of a WKB type code.
_FLAGS_MASK = 0x1FFFFFFF


def flatten(type_code: int) -> int:
    """Strip dimensionality and extension flags from a type code.

    Handles both the 2.5D high-bit convention (``0x80000000``), the EWKB
    measure and SRID flags, and the ISO offsets (1000 for Z, 2000 for M,
    3000 for ZM).

    Parameters
    ----------
    type_code : int
        A raw type code, as read from a WKB stream.

    Returns
    -------
    code : int
        The base geometry type code, or 0 if ``type_code`` lies outside
        the ISO ranges (4000 and above).
    """
    code = type_code & _FLAGS_MASK
    if code >= 4000:
        return 0
    return code % 1000


class Geometry(msgspec.Struct, kw_only=True, repr_omit_defaults=True):
    """The base class of all geometry kinds.

    Parameters
    ----------
    srs : SpatialReference, optional
        The spatial reference to attach. A reference is taken on construction.
    """

    srs: Optional[SpatialReference] = None

    type_code: ClassVar[int] = 0
    geometry_name: ClassVar[str] = "GEOMETRY"

    def __post_init__(self):
        if self.srs is not None:
            self.srs.reference()

    @property
    def geometry_type(self) -> GeometryType:
        """The base type of this geometry."""
        return GeometryType(self.type_code)

    @property
    def coordinate_dimension(self) -> int:
        """2 for planar geometries, 3 if any vertex carries a z value."""
        raise NotImplementedError

    @property
    def is_empty(self) -> bool:
        raise NotImplementedError

    def assign_spatial_reference(self, srs: Optional[SpatialReference]) -> None:
        """Attach a spatial reference, releasing any previously attached one.

        Parameters
        ----------
        srs : SpatialReference or None
            The new spatial reference. Pass ``None`` to detach.
        """
        if srs is not None:
            srs.reference()
        if self.srs is not None:
            self.srs.dereference()
        self.srs = srs

    def clone(self) -> "Geometry":
        """Return a deep copy sharing the same spatial reference."""
        raise NotImplementedError

    def wkb_size(self) -> int:
        """The number of bytes this geometry occupies when encoded as WKB."""
        from . import wkb

        return wkb.size(self)

    def to_wkb(self, byte_order: int = 1) -> bytes:
        """Encode as WKB. See `wkgeom.wkb.Encoder`.

        WKB has one dimension per record, so a geometry mixing 2D and 3D
        vertices (or rings) is promoted to 3D, with missing z values
        written as 0. Decoding it back yields 3D vertices throughout.
        """
        from . import wkb

        return wkb.encode(self, byte_order=byte_order)

    def to_wkt(self) -> str:
        """Encode as WKT. See `wkgeom.wkt.Encoder`."""
        from . import wkt

        return wkt.encode(self)

    def import_from_wkb(self, buf, nbytes: Optional[int] = None) -> None:
        """Populate this geometry in place from a WKB record.

        The record's type code must match this geometry's kind. On failure
        the geometry is left unchanged.

        Parameters
        ----------
        buf : bytes-like
            The WKB record.
        nbytes : int, optional
            The number of valid bytes in ``buf``. Defaults to ``len(buf)``.
        """
        from . import wkb

        wkb.import_into(self, buf, nbytes)

    def import_from_wkt(self, text, pos: int = 0) -> int:
        """Populate this geometry in place from WKT starting at ``pos``.

        Returns
        -------
        end : int
            The position just past the last character consumed.
        """
        from . import wkt

        return wkt.import_into(self, text, pos)


class Point(Geometry):
    """A single position. A ``z`` of ``None`` marks a 2D point."""

    x: float = 0.0
    y: float = 0.0
    z: Optional[float] = None

    type_code: ClassVar[int] = GeometryType.POINT
    geometry_name: ClassVar[str] = "POINT"

    @property
    def coordinate_dimension(self) -> int:
        return 2 if self.z is None else 3

    @property
    def is_empty(self) -> bool:
        return False

    @property
    def coords(self) -> Coordinate:
        if self.z is None:
            return (self.x, self.y)
        return (self.x, self.y, self.z)

    def clone(self) -> "Point":
        return Point(self.x, self.y, self.z, srs=self.srs)


class LineString(Geometry):
    """An ordered sequence of vertices."""

    points: List[Coordinate] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.LINESTRING
    geometry_name: ClassVar[str] = "LINESTRING"

    @property
    def coordinate_dimension(self) -> int:
        return 3 if any(len(p) > 2 for p in self.points) else 2

    @property
    def is_empty(self) -> bool:
        return not self.points

    @property
    def num_points(self) -> int:
        return len(self.points)

    def add_point(self, x: float, y: float, z: Optional[float] = None) -> None:
        self.points.append((x, y) if z is None else (x, y, z))

    def clone(self) -> "LineString":
        return type(self)(list(self.points), srs=self.srs)


class LinearRing(LineString):
    """A polygon boundary.

    Rings only ever appear inside a `Polygon`; they are not closed
    automatically.
    """

    geometry_name: ClassVar[str] = "LINEARRING"

    @property
    def is_closed(self) -> bool:
        return bool(self.points) and self.points[0] == self.points[-1]


class Polygon(Geometry):
    """A surface bounded by one exterior ring and zero or more holes.

    ``rings[0]`` is the exterior ring; any further rings are interior.
    """

    rings: List[LinearRing] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.POLYGON
    geometry_name: ClassVar[str] = "POLYGON"

    @property
    def coordinate_dimension(self) -> int:
        return max((r.coordinate_dimension for r in self.rings), default=2)

    @property
    def is_empty(self) -> bool:
        return not self.rings

    @property
    def exterior_ring(self) -> Optional[LinearRing]:
        return self.rings[0] if self.rings else None

    @property
    def interior_rings(self) -> List[LinearRing]:
        return self.rings[1:]

    @property
    def num_interior_rings(self) -> int:
        return max(len(self.rings) - 1, 0)

    def add_ring(self, ring: LinearRing) -> None:
        """Append a ring, taking ownership of it.

        The first ring added becomes the exterior ring.
        """
        if not isinstance(ring, LinearRing):
            raise TypeError(f"Expected a LinearRing, got {type(ring).__name__}")
        self.rings.append(ring)

    def clone(self) -> "Polygon":
        return Polygon([r.clone() for r in self.rings], srs=self.srs)


class GeometryCollection(Geometry):
    """An ordered collection of geometries of any kind.

    Members are owned by the collection. Assigning a spatial reference to a
    collection assigns it to every member as well.
    """

    geoms: List[Geometry] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.GEOMETRYCOLLECTION
    geometry_name: ClassVar[str] = "GEOMETRYCOLLECTION"
    member_type: ClassVar[type] = Geometry

    @property
    def coordinate_dimension(self) -> int:
        return max((g.coordinate_dimension for g in self.geoms), default=2)

    @property
    def is_empty(self) -> bool:
        return not self.geoms

    @property
    def num_geometries(self) -> int:
        return len(self.geoms)

    @classmethod
    def accepts(cls, geom: Geometry) -> bool:
        """Whether ``geom`` may be a member of this kind of collection."""
        return isinstance(geom, cls.member_type) and not isinstance(geom, LinearRing)

    def add_geometry(self, geom: Geometry) -> None:
        """Append a member, taking ownership of it.

        Raises
        ------
        UnsupportedGeometryType
            If ``geom`` is of a kind this collection can't hold.
        """
        if not self.accepts(geom):
            raise UnsupportedGeometryType(
                f"{self.geometry_name} can't contain a {geom.geometry_name}"
            )
        self.geoms.append(geom)

    def assign_spatial_reference(self, srs: Optional[SpatialReference]) -> None:
        super().assign_spatial_reference(srs)
        for geom in self.geoms:
            geom.assign_spatial_reference(srs)

    def clone(self) -> "GeometryCollection":
        return type(self)([g.clone() for g in self.geoms], srs=self.srs)


class MultiPoint(GeometryCollection):
    geoms: List[Point] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.MULTIPOINT
    geometry_name: ClassVar[str] = "MULTIPOINT"
    member_type: ClassVar[type] = Point


class MultiLineString(GeometryCollection):
    geoms: List[LineString] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.MULTILINESTRING
    geometry_name: ClassVar[str] = "MULTILINESTRING"
    member_type: ClassVar[type] = LineString


class MultiPolygon(GeometryCollection):
    geoms: List[Polygon] = msgspec.field(default_factory=list)

    type_code: ClassVar[int] = GeometryType.MULTIPOLYGON
    geometry_name: ClassVar[str] = "MULTIPOLYGON"
    member_type: ClassVar[type] = Polygon
