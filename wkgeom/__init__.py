import logging as _logging

from ._errors import (
    CorruptData,
    GeometryError,
    NotEnoughData,
    UnsupportedGeometryType,
)
from ._utils import MAX_DEPTH
from .srs import SpatialReference
from .geometry import (
    Geometry,
    GeometryCollection,
    GeometryType,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    flatten,
)
from .factory import (
    create_geometry,
    destroy_geometry,
    force_to_multipolygon,
    force_to_polygon,
)
from .wkb import WKB_NDR, WKB_XDR, create_from_wkb
from .wkt import create_from_wkt

from . import geojson, wkb, wkt
from ._version import __version__

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
