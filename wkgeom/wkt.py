"""Well-Known Text (WKT) encoding and decoding.

The grammar handled here is::

    geometry  := KEYWORD ["Z"] body
    body      := "EMPTY" | "(" ... ")"

with the parenthesized part holding a coordinate list for points and
linestrings, a list of rings for polygons, and a list of member bodies (or
complete tagged geometries, for a GEOMETRYCOLLECTION) for collections.
Keywords are matched case-insensitively.

Decoding works on a position index into the input. `create_from_wkt`
returns the position just past the consumed text, so several geometries
can be read back to back from one string.
"""
import logging
import re
from typing import Callable, List, Optional, Tuple, TypeVar

from ._errors import CorruptData, GeometryError, UnsupportedGeometryType
from ._utils import MAX_DEPTH, as_str, check_max_depth
from .factory import destroy_geometry
from .geometry import (
    Coordinate,
    Geometry,
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
)
from .srs import SpatialReference

__all__ = ("Encoder", "Decoder", "encode", "decode", "create_from_wkt")


def __dir__():
    return __all__


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Tokens this long or longer are rejected outright
_TOKEN_MAX = 64

_TOKEN_RE = re.compile(r"\s*([(),]|[^\s(),]+)")
# Includes the non-finite spellings the encoder writes (nan, inf, -inf)
_NUMBER_RE = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|nan|inf(?:inity)?)\Z", re.IGNORECASE
)

_KEYWORDS = {
    cls.geometry_name: cls
    for cls in (
        Point,
        LineString,
        Polygon,
        GeometryCollection,
        MultiPolygon,
        MultiPoint,
        MultiLineString,
    )
}


class _Tokenizer:
    __slots__ = ("text", "pos", "max_depth")

    def __init__(self, text, pos, max_depth):
        self.text = text
        self.pos = pos
        self.max_depth = max_depth

    def next_token(self) -> str:
        """Read the next token, returning an empty string at end of input."""
        match = _TOKEN_RE.match(self.text, self.pos)
        if match is None:
            return ""
        token = match.group(1)
        if len(token) >= _TOKEN_MAX:
            raise CorruptData(f"Token at position {match.start(1)} is too long")
        self.pos = match.end()
        return token

    def peek_token(self) -> str:
        pos = self.pos
        try:
            return self.next_token()
        finally:
            self.pos = pos

    def expect(self, expected: str) -> None:
        token = self.next_token()
        if token != expected:
            raise CorruptData(
                f"Expected {expected!r} at position {self.pos}, got {token or 'end of input'!r}"
            )


def _read_number(tok: _Tokenizer) -> float:
    token = tok.next_token()
    if _NUMBER_RE.match(token) is None:
        raise CorruptData(f"Expected a number at position {tok.pos}, got {token!r}")
    return float(token)


def _read_coord(tok: _Tokenizer) -> Coordinate:
    x = _read_number(tok)
    y = _read_number(tok)
    if tok.peek_token() in (",", ")"):
        return (x, y)
    return (x, y, _read_number(tok))


def _read_list(tok: _Tokenizer, read_item: Callable[[_Tokenizer], T], items: List[T]) -> List[T]:
    """Read ``"(" item ("," item)* ")"``, appending to ``items``.

    Items are appended as they are read, so a caller owning them can release
    the ones already built if a later item fails.
    """
    tok.expect("(")
    if tok.peek_token() == ")":
        tok.next_token()
        return items
    while True:
        items.append(read_item(tok))
        token = tok.next_token()
        if token == ")":
            return items
        if token != ",":
            raise CorruptData(
                f"Expected ',' or ')' at position {tok.pos}, got {token or 'end of input'!r}"
            )


def _read_coords(tok: _Tokenizer) -> List[Coordinate]:
    return _read_list(tok, _read_coord, [])


def _read_empty(tok: _Tokenizer) -> bool:
    if tok.peek_token().upper() == "EMPTY":
        tok.next_token()
        return True
    return False


def _read_point(tok, geom, depth):
    if _read_empty(tok):
        raise CorruptData("POINT EMPTY is not supported")
    coords = _read_coords(tok)
    if len(coords) != 1:
        raise CorruptData(f"POINT must have exactly one coordinate, got {len(coords)}")
    (coord,) = coords
    geom.x, geom.y = coord[0], coord[1]
    geom.z = coord[2] if len(coord) > 2 else None


def _read_linestring(tok, geom, depth):
    geom.points = [] if _read_empty(tok) else _read_coords(tok)


def _read_ring(tok):
    return LinearRing(_read_coords(tok))


def _read_polygon(tok, geom, depth):
    geom.rings = [] if _read_empty(tok) else _read_list(tok, _read_ring, [])


def _read_multipoint_member(tok):
    # Members may be written bare (``1 2``) or parenthesized (``(1 2)``)
    if tok.peek_token() == "(":
        coords = _read_coords(tok)
        if len(coords) != 1:
            raise CorruptData(f"MULTIPOINT member must have one coordinate, got {len(coords)}")
        (coord,) = coords
    else:
        coord = _read_coord(tok)
    return Point(*coord)


def _read_member_body(cls):
    def read(tok):
        member = cls()
        _BODY_READERS[cls](tok, member, 0)
        return member

    return read


def _read_collection(tok, geom, depth):
    if depth >= tok.max_depth:
        logger.debug("WKT collection nesting exceeded max_depth=%d", tok.max_depth)
        raise CorruptData(
            f"WKT collections nested deeper than the maximum depth of {tok.max_depth}"
        )
    if _read_empty(tok):
        _replace_members(geom, [])
        return

    if isinstance(geom, MultiPoint):
        read_member = _read_multipoint_member
    elif isinstance(geom, MultiLineString):
        read_member = _read_member_body(LineString)
    elif isinstance(geom, MultiPolygon):
        read_member = _read_member_body(Polygon)
    else:

        def read_member(tok):
            return _read_tagged(tok, depth + 1)

    members = []
    try:
        _read_list(tok, read_member, members)
    except GeometryError:
        for member in members:
            destroy_geometry(member)
        raise
    _replace_members(geom, members)


def _replace_members(geom, members):
    old, geom.geoms = geom.geoms, members
    for member in old:
        destroy_geometry(member)


_BODY_READERS = {
    Point: _read_point,
    LineString: _read_linestring,
    Polygon: _read_polygon,
    MultiPoint: _read_collection,
    MultiLineString: _read_collection,
    MultiPolygon: _read_collection,
    GeometryCollection: _read_collection,
}


def _read_keyword(tok: _Tokenizer) -> type:
    start = tok.pos
    token = tok.next_token()
    if not token or token in ("(", ")", ","):
        raise CorruptData(f"Expected a WKT geometry keyword at position {start}")
    cls = _KEYWORDS.get(token.upper())
    if cls is None:
        logger.debug("Unsupported WKT geometry type %r", token)
        raise UnsupportedGeometryType(f"Unsupported WKT geometry type {token!r}")
    return cls


def _import_geometry(tok: _Tokenizer, geom: Geometry, depth: int) -> None:
    cls = _read_keyword(tok)
    if cls.type_code != geom.type_code:
        raise UnsupportedGeometryType(
            f"Expected {geom.geometry_name}, got {cls.geometry_name}"
        )
    if tok.peek_token().upper() == "Z":
        tok.next_token()
    _BODY_READERS[cls](tok, geom, depth)


def _read_tagged(tok: _Tokenizer, depth: int) -> Geometry:
    start = tok.pos
    geom = _read_keyword(tok)()
    tok.pos = start
    try:
        _import_geometry(tok, geom, depth)
    except GeometryError:
        destroy_geometry(geom)
        raise
    return geom


def import_into(geom: Geometry, text, pos: int = 0, max_depth: int = MAX_DEPTH) -> int:
    """Populate an existing geometry from WKT starting at ``pos``.

    See `Geometry.import_from_wkt`.
    """
    tok = _Tokenizer(as_str(text), pos, max_depth)
    _import_geometry(tok, geom, 0)
    return tok.pos


class Decoder:
    """A WKT decoder.

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
        return f"wkgeom.wkt.Decoder(srs={self.srs!r}, max_depth={self.max_depth})"

    def decode_prefix(self, text, pos: int = 0) -> Tuple[Geometry, int]:
        """Decode one geometry starting at ``pos``.

        Parameters
        ----------
        text : str or bytes-like
            The WKT input.
        pos : int, optional
            The position to start reading from.

        Returns
        -------
        geom : Geometry
            The decoded geometry, owned by the caller.
        end : int
            The position just past the last character consumed (the closing
            parenthesis or ``EMPTY`` keyword).

        Raises
        ------
        CorruptData
            If the input is empty, malformed, or nested too deeply.
        UnsupportedGeometryType
            If the keyword isn't a recognized geometry type.
        """
        tok = _Tokenizer(as_str(text), pos, self.max_depth)
        geom = _read_tagged(tok, 0)
        geom.assign_spatial_reference(self.srs)
        return geom, tok.pos

    def decode(self, text) -> Geometry:
        """Decode a geometry from WKT.

        Unlike `decode_prefix`, the whole input (up to trailing whitespace)
        must be consumed.

        Parameters
        ----------
        text : str or bytes-like
            The WKT input.

        Returns
        -------
        geom : Geometry
        """
        text = as_str(text)
        geom, end = self.decode_prefix(text)
        if text[end:].strip():
            destroy_geometry(geom)
            raise CorruptData(f"Trailing characters at position {end}")
        return geom


def decode(
    text, *, srs: Optional[SpatialReference] = None, max_depth: int = MAX_DEPTH
) -> Geometry:
    """Decode a geometry from WKT.

    See `Decoder.decode` for details.
    """
    return Decoder(srs=srs, max_depth=max_depth).decode(text)


def create_from_wkt(
    text, srs: Optional[SpatialReference] = None, pos: int = 0
) -> Tuple[Geometry, int]:
    """Create a geometry from its WKT representation.

    Parameters
    ----------
    text : str or bytes-like
        The WKT input.
    srs : SpatialReference, optional
        The spatial reference to attach to the result.
    pos : int, optional
        The position in ``text`` to start reading from.

    Returns
    -------
    geom : Geometry
        The decoded geometry.
    end : int
        The position just past the consumed text. Pass it back as ``pos`` to
        read a following geometry.
    """
    return Decoder(srs=srs).decode_prefix(text, pos)


def _format_number(value) -> str:
    value = float(value)
    if value.is_integer() and abs(value) < 1e15:
        return "%d" % value
    return repr(value)


def _format_coord(coord: Coordinate) -> str:
    return " ".join(map(_format_number, coord))


def _format_coords(coords: List[Coordinate]) -> str:
    return "(%s)" % ",".join(map(_format_coord, coords))


def _format_body(geom: Geometry) -> str:
    if isinstance(geom, Point):
        return "(%s)" % _format_coord(geom.coords)
    if geom.is_empty:
        return "EMPTY"
    if isinstance(geom, LineString):
        return _format_coords(geom.points)
    if isinstance(geom, Polygon):
        return "(%s)" % ",".join(_format_coords(r.points) for r in geom.rings)
    if isinstance(geom, MultiPoint):
        return "(%s)" % ",".join(_format_coord(p.coords) for p in geom.geoms)
    if isinstance(geom, (MultiLineString, MultiPolygon)):
        return "(%s)" % ",".join(map(_format_body, geom.geoms))
    if isinstance(geom, GeometryCollection):
        return "(%s)" % ",".join(map(_format, geom.geoms))
    raise TypeError(f"Unsupported geometry class {type(geom).__name__}")


def _format(geom: Geometry) -> str:
    if not isinstance(geom, Geometry):
        raise TypeError(f"Encoding objects of type {type(geom).__name__} is unsupported")
    return f"{geom.geometry_name} {_format_body(geom)}"


class Encoder:
    """A WKT encoder.

    Coordinates with integral values are written without a decimal point,
    all others with the shortest representation that reads back exactly.
    """

    __slots__ = ()

    def __repr__(self):
        return "wkgeom.wkt.Encoder()"

    def encode(self, geom: Geometry) -> str:
        """Serialize a geometry as WKT.

        Parameters
        ----------
        geom : Geometry
            The geometry to serialize.

        Returns
        -------
        data : str
            The serialized geometry, e.g. ``"POINT (30 10)"``.
        """
        return _format(geom)


def encode(geom: Geometry) -> str:
    """Serialize a geometry as WKT.

    See `Encoder.encode` for details.
    """
    return Encoder().encode(geom)
