"""Well-Known Binary (WKB) encoding and decoding.

Every WKB record starts with a one byte byte-order marker and a four byte
type code, followed by a payload specific to the geometry kind::

    [order: 1][type: 4][payload]

Collections store a member count followed by that many complete records,
each with its own byte order and type code.
"""
import logging
import struct
from typing import List, Optional, Tuple

from ._errors import CorruptData, GeometryError, NotEnoughData, UnsupportedGeometryType
from ._utils import MAX_DEPTH, as_bytes, check_max_depth
from .factory import create_geometry, destroy_geometry
from .geometry import (
    Coordinate,
    Geometry,
    GeometryCollection,
    LinearRing,
    LineString,
    Point,
    Polygon,
    flatten,
)
from .srs import SpatialReference

__all__ = (
    "WKB_XDR",
    "WKB_NDR",
    "Encoder",
    "Decoder",
    "encode",
    "decode",
    "size",
    "create_from_wkb",
)


def __dir__():
    return __all__


logger = logging.getLogger(__name__)

#: Byte order marker for big-endian ("eXternal Data Representation") records.
WKB_XDR = 0
#: Byte order marker for little-endian ("Network Data Representation") records.
WKB_NDR = 1

_PREFIXES = {WKB_XDR: ">", WKB_NDR: "<"}

_HEADER_SIZE = 5
# The smallest complete record a collection member can be: a header and a
# zero count.
_MIN_MEMBER_SIZE = _HEADER_SIZE + 4

_FLAG_Z = 0x80000000
_FLAG_M = 0x40000000
_FLAG_SRID = 0x20000000


def _ordinates(type_code: int) -> Tuple[bool, int]:
    """Returns whether vertices carry a z value, and the ordinates per vertex."""
    iso = (type_code & 0x1FFFFFFF) // 1000
    has_z = bool(type_code & _FLAG_Z) or iso in (1, 3)
    has_m = bool(type_code & _FLAG_M) or iso in (2, 3)
    return has_z, 2 + has_z + has_m


class _Reader:
    __slots__ = ("buf", "end", "pos", "max_depth")

    def __init__(self, buf, nbytes, max_depth):
        buf = as_bytes(buf)
        if nbytes is None:
            end = len(buf)
        elif nbytes < _HEADER_SIZE:
            raise NotEnoughData(
                f"WKB input of {nbytes} bytes is shorter than the {_HEADER_SIZE} "
                "byte record header"
            )
        else:
            end = min(nbytes, len(buf))
        self.buf = buf
        self.end = end
        self.pos = 0
        self.max_depth = max_depth

    def need(self, n):
        if n > self.end - self.pos:
            raise NotEnoughData(
                f"WKB input truncated: needed {n} bytes at offset {self.pos}, "
                f"only {self.end - self.pos} available"
            )

    def peek_header(self) -> Tuple[str, int]:
        self.need(_HEADER_SIZE)
        order = self.buf[self.pos]
        prefix = _PREFIXES.get(order)
        if prefix is None:
            logger.debug(
                "Got corrupt WKB data at offset %d: %s",
                self.pos,
                self.buf[self.pos : self.pos + 9].hex().upper(),
            )
            raise CorruptData(
                f"Invalid WKB byte order marker 0x{order:02X} at offset {self.pos}"
            )
        (type_code,) = struct.unpack_from(prefix + "I", self.buf, self.pos + 1)
        return prefix, type_code

    def read_header(self) -> Tuple[str, int]:
        prefix, type_code = self.peek_header()
        self.pos += _HEADER_SIZE
        if type_code & _FLAG_SRID:
            # EWKB embeds an SRID after the type code, which isn't used here
            self.need(4)
            self.pos += 4
        return prefix, type_code

    def read_count(self, prefix: str, item_size: int) -> int:
        self.need(4)
        (count,) = struct.unpack_from(prefix + "I", self.buf, self.pos)
        self.pos += 4
        # Check against the remaining input before anything is allocated
        self.need(count * item_size)
        return count

    def read_coords(self, prefix: str, count: int, has_z: bool, ndims: int) -> List[Coordinate]:
        nvalues = count * ndims
        self.need(nvalues * 8)
        values = struct.unpack_from(f"{prefix}{nvalues}d", self.buf, self.pos)
        self.pos += nvalues * 8
        width = 3 if has_z else 2
        return [values[i : i + width] for i in range(0, nvalues, ndims)]


def _import_point(reader, geom, prefix, has_z, ndims, depth):
    (coords,) = reader.read_coords(prefix, 1, has_z, ndims)
    geom.x, geom.y = coords[0], coords[1]
    geom.z = coords[2] if has_z else None


def _import_linestring(reader, geom, prefix, has_z, ndims, depth):
    count = reader.read_count(prefix, ndims * 8)
    geom.points = reader.read_coords(prefix, count, has_z, ndims)


def _import_polygon(reader, geom, prefix, has_z, ndims, depth):
    nrings = reader.read_count(prefix, 4)
    rings = []
    for _ in range(nrings):
        count = reader.read_count(prefix, ndims * 8)
        rings.append(LinearRing(reader.read_coords(prefix, count, has_z, ndims)))
    geom.rings = rings


def _import_collection(reader, geom, prefix, has_z, ndims, depth):
    if depth >= reader.max_depth:
        logger.debug("WKB collection nesting exceeded max_depth=%d", reader.max_depth)
        raise CorruptData(
            f"WKB collections nested deeper than the maximum depth of {reader.max_depth}"
        )
    count = reader.read_count(prefix, _MIN_MEMBER_SIZE)
    members = []
    try:
        for _ in range(count):
            _, type_code = reader.peek_header()
            member = create_geometry(type_code)
            if member is None:
                raise UnsupportedGeometryType(
                    f"Unsupported WKB geometry type {type_code} at offset {reader.pos}"
                )
            if not geom.accepts(member):
                raise UnsupportedGeometryType(
                    f"{geom.geometry_name} can't contain a {member.geometry_name}"
                )
            members.append(member)
            _import_geometry(reader, member, depth + 1)
    except GeometryError:
        for member in members:
            destroy_geometry(member)
        raise
    old, geom.geoms = geom.geoms, members
    for member in old:
        destroy_geometry(member)


# Subclasses (LinearRing, the Multi* kinds) share their base class's importer
_IMPORTERS = (
    (Point, _import_point),
    (LineString, _import_linestring),
    (Polygon, _import_polygon),
    (GeometryCollection, _import_collection),
)


def _import_geometry(reader: _Reader, geom: Geometry, depth: int) -> None:
    start = reader.pos
    prefix, type_code = reader.read_header()
    if flatten(type_code) != geom.type_code:
        raise CorruptData(
            f"WKB type code {type_code} at offset {start} doesn't match "
            f"the expected {geom.geometry_name}"
        )
    has_z, ndims = _ordinates(type_code)
    for cls, importer in _IMPORTERS:
        if isinstance(geom, cls):
            importer(reader, geom, prefix, has_z, ndims, depth)
            return
    raise TypeError(f"Unsupported geometry class {type(geom).__name__}")


def import_into(geom: Geometry, buf, nbytes: Optional[int] = None, max_depth: int = MAX_DEPTH) -> None:
    """Populate an existing geometry from a WKB record.

    See `Geometry.import_from_wkb`.
    """
    _import_geometry(_Reader(buf, nbytes, max_depth), geom, 0)


class Decoder:
    """A WKB decoder.

    Parameters
    ----------
    srs : SpatialReference, optional
        A spatial reference to attach to every decoded geometry.
    max_depth : int, optional
        The maximum number of nested collection levels to accept. Deeper
        input raises `CorruptData`. Defaults to `MAX_DEPTH`.
    """

    __slots__ = ("srs", "max_depth")

    def __init__(self, *, srs: Optional[SpatialReference] = None, max_depth: int = MAX_DEPTH):
        self.srs = srs
        self.max_depth = check_max_depth(max_depth)

    def __repr__(self):
        return f"wkgeom.wkb.Decoder(srs={self.srs!r}, max_depth={self.max_depth})"

    def decode(self, buf, *, nbytes: Optional[int] = None) -> Geometry:
        """Decode a geometry from a WKB record.

        Parameters
        ----------
        buf : bytes-like
            The WKB record. Bytes past the end of the record are ignored.
        nbytes : int, optional
            The number of valid bytes in ``buf``. If ``None`` (the default)
            the length isn't trusted and the whole buffer is available.

        Returns
        -------
        geom : Geometry
            The decoded geometry, owned by the caller.

        Raises
        ------
        NotEnoughData
            If the input ends before the record is complete.
        CorruptData
            If the byte order marker is invalid or the record is malformed.
        UnsupportedGeometryType
            If the type code isn't recognized.

        Notes
        -----
        The number of bytes consumed isn't reported; use
        `Geometry.wkb_size` on the result.
        """
        reader = _Reader(buf, nbytes, self.max_depth)
        _, type_code = reader.peek_header()
        geom = create_geometry(type_code)
        if geom is None:
            logger.debug("Unsupported WKB geometry type %d", type_code)
            raise UnsupportedGeometryType(f"Unsupported WKB geometry type {type_code}")
        try:
            _import_geometry(reader, geom, 0)
        except GeometryError:
            destroy_geometry(geom)
            raise
        geom.assign_spatial_reference(self.srs)
        return geom


def decode(
    buf,
    *,
    srs: Optional[SpatialReference] = None,
    nbytes: Optional[int] = None,
    max_depth: int = MAX_DEPTH,
) -> Geometry:
    """Decode a geometry from a WKB record.

    See `Decoder.decode` for details.
    """
    return Decoder(srs=srs, max_depth=max_depth).decode(buf, nbytes=nbytes)


def create_from_wkb(
    buf, srs: Optional[SpatialReference] = None, nbytes: Optional[int] = None
) -> Geometry:
    """Create a geometry from its WKB representation.

    Parameters
    ----------
    buf : bytes-like
        The WKB record.
    srs : SpatialReference, optional
        The spatial reference to attach to the result.
    nbytes : int, optional
        The number of valid bytes in ``buf``, or ``None`` if unknown.

    Returns
    -------
    geom : Geometry
    """
    return Decoder(srs=srs).decode(buf, nbytes=nbytes)


def _pack_coords(out, prefix, coords, ndims):
    for c in coords:
        if ndims == 3:
            out += struct.pack(prefix + "3d", c[0], c[1], c[2] if len(c) > 2 else 0.0)
        else:
            out += struct.pack(prefix + "2d", c[0], c[1])


def _write_geometry(out: bytearray, geom: Geometry, order: int, prefix: str) -> None:
    if not isinstance(geom, Geometry):
        raise TypeError(f"Encoding objects of type {type(geom).__name__} is unsupported")
    ndims = geom.coordinate_dimension
    type_code = geom.type_code | (_FLAG_Z if ndims == 3 else 0)
    out += struct.pack(prefix + "BI", order, type_code)
    if isinstance(geom, Point):
        _pack_coords(out, prefix, [geom.coords], ndims)
    elif isinstance(geom, LineString):
        out += struct.pack(prefix + "I", len(geom.points))
        _pack_coords(out, prefix, geom.points, ndims)
    elif isinstance(geom, Polygon):
        out += struct.pack(prefix + "I", len(geom.rings))
        for ring in geom.rings:
            out += struct.pack(prefix + "I", len(ring.points))
            _pack_coords(out, prefix, ring.points, ndims)
    elif isinstance(geom, GeometryCollection):
        out += struct.pack(prefix + "I", len(geom.geoms))
        for member in geom.geoms:
            _write_geometry(out, member, order, prefix)
    else:
        raise TypeError(f"Unsupported geometry class {type(geom).__name__}")


class Encoder:
    """A WKB encoder.

    Parameters
    ----------
    byte_order : int, optional
        Either `WKB_NDR` (little-endian, the default) or `WKB_XDR`
        (big-endian).
    """

    __slots__ = ("byte_order",)

    def __init__(self, *, byte_order: int = WKB_NDR):
        if byte_order not in _PREFIXES:
            raise ValueError(
                f"byte_order must be WKB_NDR ({WKB_NDR}) or WKB_XDR ({WKB_XDR}), "
                f"got {byte_order!r}"
            )
        self.byte_order = byte_order

    def __repr__(self):
        return f"wkgeom.wkb.Encoder(byte_order={self.byte_order})"

    def encode(self, geom: Geometry) -> bytes:
        """Serialize a geometry as WKB.

        Geometries with any 3D vertex are written with the 2.5D flag set and
        three ordinates per vertex, missing z values written as 0.

        Parameters
        ----------
        geom : Geometry
            The geometry to serialize.

        Returns
        -------
        data : bytes
            The serialized geometry.
        """
        out = bytearray()
        _write_geometry(out, geom, self.byte_order, _PREFIXES[self.byte_order])
        return bytes(out)


def encode(geom: Geometry, *, byte_order: int = WKB_NDR) -> bytes:
    """Serialize a geometry as WKB.

    See `Encoder.encode` for details.
    """
    return Encoder(byte_order=byte_order).encode(geom)


def size(geom: Geometry) -> int:
    """The number of bytes ``geom`` occupies when encoded as WKB."""
    vertex = 8 * geom.coordinate_dimension
    if isinstance(geom, Point):
        return _HEADER_SIZE + vertex
    if isinstance(geom, LineString):
        return _HEADER_SIZE + 4 + vertex * len(geom.points)
    if isinstance(geom, Polygon):
        return _HEADER_SIZE + 4 + sum(4 + vertex * len(r.points) for r in geom.rings)
    if isinstance(geom, GeometryCollection):
        return _HEADER_SIZE + 4 + sum(size(m) for m in geom.geoms)
    raise TypeError(f"Unsupported geometry class {type(geom).__name__}")
