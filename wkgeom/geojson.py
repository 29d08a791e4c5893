"""Conversion between geometries and GeoJSON.

The seven GeoJSON geometry objects are modelled as tagged `msgspec.Struct`
types, so decoding and validation are done by ``msgspec.json``. Errors from
msgspec (`msgspec.DecodeError`, `msgspec.ValidationError`) propagate
unchanged. Collections nested deeper than ``max_depth`` raise `CorruptData`,
as they do for the WKB and WKT decoders.
"""
from __future__ import annotations

from typing import Annotated, List, Optional, Tuple, Union

import msgspec

from . import geometry as _g
from ._errors import CorruptData
from ._utils import MAX_DEPTH, check_max_depth
from .srs import SpatialReference

__all__ = ("encode", "decode", "to_geojson", "from_geojson", "GeoJSONGeometry")


def __dir__():
    return __all__


Position = Annotated[Tuple[float, ...], msgspec.Meta(min_length=2, max_length=3)]


# All types set `tag=True`, meaning that they'll make use of a `type` field to
# disambiguate between types when decoding.
class Point(msgspec.Struct, tag=True):
    coordinates: Position


class MultiPoint(msgspec.Struct, tag=True):
    coordinates: List[Position]


class LineString(msgspec.Struct, tag=True):
    coordinates: List[Position]


class MultiLineString(msgspec.Struct, tag=True):
    coordinates: List[List[Position]]


class Polygon(msgspec.Struct, tag=True):
    coordinates: List[List[Position]]


class MultiPolygon(msgspec.Struct, tag=True):
    coordinates: List[List[List[Position]]]


class GeometryCollection(msgspec.Struct, tag=True):
    geometries: List[GeoJSONGeometry]


GeoJSONGeometry = Union[
    Point,
    MultiPoint,
    LineString,
    MultiLineString,
    Polygon,
    MultiPolygon,
    GeometryCollection,
]

_encoder = msgspec.json.Encoder()
_decoder = msgspec.json.Decoder(GeoJSONGeometry)


def _rings(geom: _g.Polygon) -> List[List[Tuple[float, ...]]]:
    return [list(r.points) for r in geom.rings]


def to_geojson(geom: _g.Geometry) -> GeoJSONGeometry:
    """Convert a geometry into the equivalent GeoJSON struct."""
    if isinstance(geom, _g.Point):
        return Point(geom.coords)
    if isinstance(geom, _g.LineString):
        return LineString(list(geom.points))
    if isinstance(geom, _g.Polygon):
        return Polygon(_rings(geom))
    if isinstance(geom, _g.MultiPoint):
        return MultiPoint([p.coords for p in geom.geoms])
    if isinstance(geom, _g.MultiLineString):
        return MultiLineString([list(ls.points) for ls in geom.geoms])
    if isinstance(geom, _g.MultiPolygon):
        return MultiPolygon([_rings(p) for p in geom.geoms])
    if isinstance(geom, _g.GeometryCollection):
        return GeometryCollection([to_geojson(g) for g in geom.geoms])
    raise TypeError(f"Encoding objects of type {type(geom).__name__} is unsupported")


def _polygon(rings: List[List[Tuple[float, ...]]]) -> _g.Polygon:
    return _g.Polygon([_g.LinearRing(list(r)) for r in rings])


def _from_geojson(obj, depth: int, max_depth: int) -> _g.Geometry:
    if isinstance(obj, Point):
        return _g.Point(*obj.coordinates)
    if isinstance(obj, LineString):
        return _g.LineString(list(obj.coordinates))
    if isinstance(obj, Polygon):
        return _polygon(obj.coordinates)
    if isinstance(obj, MultiPoint):
        return _g.MultiPoint([_g.Point(*c) for c in obj.coordinates])
    if isinstance(obj, MultiLineString):
        return _g.MultiLineString([_g.LineString(list(c)) for c in obj.coordinates])
    if isinstance(obj, MultiPolygon):
        return _g.MultiPolygon([_polygon(p) for p in obj.coordinates])
    if isinstance(obj, GeometryCollection):
        if depth >= max_depth:
            raise CorruptData(
                f"GeoJSON collections nested deeper than the maximum depth of {max_depth}"
            )
        return _g.GeometryCollection(
            [_from_geojson(o, depth + 1, max_depth) for o in obj.geometries]
        )
    raise TypeError(f"Decoding objects of type {type(obj).__name__} is unsupported")


def from_geojson(obj: GeoJSONGeometry, max_depth: int = MAX_DEPTH) -> _g.Geometry:
    """Convert a GeoJSON struct into the equivalent geometry.

    Raises `CorruptData` if geometry collections nest more than
    ``max_depth`` levels deep.
    """
    return _from_geojson(obj, 0, check_max_depth(max_depth))


def encode(geom: _g.Geometry) -> bytes:
    """Serialize a geometry as a GeoJSON geometry object.

    Parameters
    ----------
    geom : Geometry
        The geometry to serialize.

    Returns
    -------
    data : bytes
        The serialized geometry. The spatial reference isn't included.
    """
    return _encoder.encode(to_geojson(geom))


def decode(
    buf, *, srs: Optional[SpatialReference] = None, max_depth: int = MAX_DEPTH
) -> _g.Geometry:
    """Deserialize a geometry from a GeoJSON geometry object.

    Parameters
    ----------
    buf : bytes-like or str
        The message to decode.
    srs : SpatialReference, optional
        The spatial reference to attach to the result.
    max_depth : int, optional
        The maximum number of nested collection levels to accept. Deeper
        input raises `CorruptData`. Defaults to `MAX_DEPTH`.

    Returns
    -------
    geom : Geometry
        The decoded geometry.
    """
    max_depth = check_max_depth(max_depth)
    try:
        obj = _decoder.decode(buf)
    except RecursionError:
        raise CorruptData(
            f"GeoJSON collections nested deeper than the maximum depth of {max_depth}"
        ) from None
    geom = from_geojson(obj, max_depth)
    geom.assign_spatial_reference(srs)
    return geom
