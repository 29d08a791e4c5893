import msgspec

__all__ = (
    "GeometryError",
    "NotEnoughData",
    "CorruptData",
    "UnsupportedGeometryType",
)


class GeometryError(msgspec.DecodeError):
    """Base class for all errors raised while decoding or building geometries.

    Subclasses `msgspec.DecodeError`, so code already handling msgspec
    decoding failures handles these as well.
    """


class NotEnoughData(GeometryError):
    """The binary input ended before a complete geometry could be read."""


class CorruptData(GeometryError):
    """The input is structurally invalid.

    Raised for unknown WKB byte order markers, type codes that don't match
    the geometry being populated, malformed or missing WKT tokens,
    unparseable numbers, and input nested deeper than the decoder allows.
    """


class UnsupportedGeometryType(GeometryError):
    """The type code or WKT keyword doesn't name a supported geometry kind."""
