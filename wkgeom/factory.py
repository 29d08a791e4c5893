"""Construction, destruction, and shape normalization of geometries.

The decoders live in `wkgeom.wkb` and `wkgeom.wkt`; both are re-exported
from the package root alongside the functions defined here.
"""
from typing import Dict, Optional, Type

from .geometry import (
    Geometry,
    GeometryCollection,
    GeometryType,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    flatten,
)

__all__ = (
    "create_geometry",
    "destroy_geometry",
    "force_to_polygon",
    "force_to_multipolygon",
)


def __dir__():
    return __all__


_GEOMETRY_TYPES: Dict[int, Type[Geometry]] = {
    GeometryType.POINT: Point,
    GeometryType.LINESTRING: LineString,
    GeometryType.POLYGON: Polygon,
    GeometryType.MULTIPOINT: MultiPoint,
    GeometryType.MULTILINESTRING: MultiLineString,
    GeometryType.MULTIPOLYGON: MultiPolygon,
    GeometryType.GEOMETRYCOLLECTION: GeometryCollection,
}


def create_geometry(type_code: int) -> Optional[Geometry]:
    """Create an empty geometry of the kind named by a type code.

    Parameters
    ----------
    type_code : int
        A WKB type code. Dimensionality and extension flags are stripped
        (see `flatten`) before the lookup.

    Returns
    -------
    geom : Geometry or None
        A new, empty geometry, or ``None`` if the code isn't recognized.
    """
    cls = _GEOMETRY_TYPES.get(flatten(type_code))
    if cls is None:
        return None
    return cls()


def destroy_geometry(geom: Geometry) -> None:
    """Release a geometry and everything it owns.

    Members and rings are detached and destroyed in turn, and every spatial
    reference held along the way is released. Call this exactly once per
    geometry; the geometry is left empty and without a spatial reference.
    """
    if isinstance(geom, Polygon):
        owned = geom.rings
        geom.rings = []
    elif isinstance(geom, GeometryCollection):
        owned = geom.geoms
        geom.geoms = []
    else:
        owned = ()
    for child in owned:
        destroy_geometry(child)
    if geom.srs is not None:
        geom.srs.dereference()
        geom.srs = None


def force_to_polygon(geom: Optional[Geometry]) -> Optional[Geometry]:
    """Collapse a multipolygon or geometry collection into a single polygon.

    The rings of every polygon member are gathered in order: the exterior
    ring of the first polygon becomes the exterior of the result, every
    other ring (exterior or interior) becomes an interior ring. Members that
    aren't polygons are dropped. The rings are not checked for nesting, so
    the result may not be a valid polygon.

    The input is consumed when converted. Any other geometry is returned
    unchanged.

    Parameters
    ----------
    geom : Geometry
        The geometry to convert.

    Returns
    -------
    geom : Geometry
        A new `Polygon`, or the input itself.
    """
    if geom is None:
        return None

    if geom.type_code not in (
        GeometryType.GEOMETRYCOLLECTION,
        GeometryType.MULTIPOLYGON,
    ):
        return geom

    polygon = Polygon()
    for member in geom.geoms:
        if member.type_code != GeometryType.POLYGON:
            continue
        polygon.rings.extend(member.rings)
        member.rings = []

    polygon.assign_spatial_reference(geom.srs)
    destroy_geometry(geom)
    return polygon


def force_to_multipolygon(geom: Optional[Geometry]) -> Optional[Geometry]:
    """Wrap a polygon as the sole member of a new multipolygon.

    No attempt is made to split the polygon into islands. Any geometry that
    isn't a polygon is returned unchanged.

    Parameters
    ----------
    geom : Geometry
        The geometry to convert.

    Returns
    -------
    geom : Geometry
        A new `MultiPolygon` owning the input, or the input itself.
    """
    if geom is None:
        return None

    if geom.type_code != GeometryType.POLYGON:
        return geom

    multi = MultiPolygon()
    multi.add_geometry(geom)
    multi.assign_spatial_reference(geom.srs)
    return multi
