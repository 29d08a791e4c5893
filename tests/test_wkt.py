import math
import struct

import pytest
from utils import EXAMPLES, max_call_depth, square

import wkgeom
from wkgeom import (
    CorruptData,
    GeometryCollection,
    LinearRing,
    LineString,
    MultiLineString,
    MultiPoint,
    MultiPolygon,
    Point,
    Polygon,
    UnsupportedGeometryType,
)


def nested_collections_wkt(depth):
    return "GEOMETRYCOLLECTION (" * depth + "POINT (0 0)" + ")" * depth


def test_module_dir():
    assert set(dir(wkgeom.wkt)) == {"Encoder", "Decoder", "encode", "decode", "create_from_wkt"}


class TestEncoder:
    @pytest.mark.parametrize(
        "geom, sol",
        [
            (Point(30, 10), "POINT (30 10)"),
            (Point(1.5, -0.1, 2), "POINT (1.5 -0.1 2)"),
            (Point(1e-07, 1e20), "POINT (1e-07 1e+20)"),
            (LineString([(30, 10), (10, 30), (40, 40)]), "LINESTRING (30 10,10 30,40 40)"),
            (LineString(), "LINESTRING EMPTY"),
            (
                Polygon([square(0, 0, 4), square(1, 1, 1)]),
                "POLYGON ((0 0,4 0,4 4,0 4,0 0),(1 1,2 1,2 2,1 2,1 1))",
            ),
            (Polygon(), "POLYGON EMPTY"),
            (MultiPoint([Point(10, 40), Point(40, 30)]), "MULTIPOINT (10 40,40 30)"),
            (
                MultiLineString([LineString([(10, 10), (20, 20)]), LineString()]),
                "MULTILINESTRING ((10 10,20 20),EMPTY)",
            ),
            (
                MultiPolygon([Polygon([square(0, 0, 1)]), Polygon([square(5, 5, 1)])]),
                "MULTIPOLYGON (((0 0,1 0,1 1,0 1,0 0)),((5 5,6 5,6 6,5 6,5 5)))",
            ),
            (
                GeometryCollection([Point(4, 6), LineString([(4, 6), (7, 10)])]),
                "GEOMETRYCOLLECTION (POINT (4 6),LINESTRING (4 6,7 10))",
            ),
            (GeometryCollection(), "GEOMETRYCOLLECTION EMPTY"),
        ],
    )
    def test_encode(self, geom, sol):
        assert wkgeom.wkt.encode(geom) == sol
        assert geom.to_wkt() == sol

    def test_encoder_repr(self):
        assert repr(wkgeom.wkt.Encoder()) == "wkgeom.wkt.Encoder()"

    def test_encode_unsupported_type(self):
        with pytest.raises(TypeError, match="Encoding objects of type str is unsupported"):
            wkgeom.wkt.encode("POINT (1 2)")


class TestDecoder:
    @pytest.mark.parametrize("geom", EXAMPLES)
    def test_roundtrip(self, geom):
        res = wkgeom.wkt.decode(wkgeom.wkt.encode(geom))
        assert type(res) is type(geom)
        assert res == geom

    def test_decode_point_advances_past_closing_paren(self):
        text = "POINT (30 10)"
        geom, end = wkgeom.create_from_wkt(text)
        assert geom == Point(30, 10)
        assert end == len(text)

    def test_decode_prefix_leaves_remaining_input(self):
        text = "POINT (30 10) LINESTRING (1 2,3 4)"
        first, end = wkgeom.create_from_wkt(text)
        assert first == Point(30, 10)
        assert text[end:] == " LINESTRING (1 2,3 4)"

        second, end = wkgeom.create_from_wkt(text, pos=end)
        assert second == LineString([(1, 2), (3, 4)])
        assert end == len(text)

    def test_decode_multipolygon(self):
        text = "MULTIPOLYGON (((0 0,4 0,4 4,0 4,0 0)),((10 10,14 10,14 14,10 14,10 10)))"
        geom = wkgeom.wkt.decode(text)
        assert isinstance(geom, MultiPolygon)
        assert geom.num_geometries == 2
        for member, origin in zip(geom.geoms, [0, 10]):
            assert isinstance(member, Polygon)
            assert member.rings == [square(origin, origin, 4)]
            assert member.num_interior_rings == 0

    def test_polygon_rings_are_linear_rings(self):
        geom = wkgeom.wkt.decode("POLYGON ((0 0,1 0,0 1,0 0),(0.1 0.1,0.2 0.1,0.1 0.2,0.1 0.1))")
        assert all(type(r) is LinearRing for r in geom.rings)
        assert geom.exterior_ring.points[1] == (1.0, 0.0)
        assert len(geom.interior_rings) == 1

    @pytest.mark.parametrize(
        "text",
        ["point (1 2)", "Point(1 2)", "  POINT\t(\n1   2 )  ", "POINT Z (1 2)"],
    )
    def test_keywords_and_whitespace(self, text):
        assert wkgeom.wkt.decode(text) == Point(1, 2)

    def test_decode_3d(self):
        geom = wkgeom.wkt.decode("LINESTRING Z (1 2 3,4 5 6)")
        assert geom == LineString([(1, 2, 3), (4, 5, 6)])
        assert geom.coordinate_dimension == 3

    @pytest.mark.parametrize("text", ["MULTIPOINT (1 2,3 4)", "MULTIPOINT ((1 2),(3 4))"])
    def test_multipoint_forms(self, text):
        assert wkgeom.wkt.decode(text) == MultiPoint([Point(1, 2), Point(3, 4)])

    @pytest.mark.parametrize(
        "text, cls",
        [
            ("LINESTRING EMPTY", LineString),
            ("POLYGON empty", Polygon),
            ("MULTIPOINT EMPTY", MultiPoint),
            ("MULTILINESTRING EMPTY", MultiLineString),
            ("MULTIPOLYGON EMPTY", MultiPolygon),
            ("GEOMETRYCOLLECTION EMPTY", GeometryCollection),
        ],
    )
    def test_decode_empty(self, text, cls):
        geom, end = wkgeom.create_from_wkt(text)
        assert type(geom) is cls
        assert geom.is_empty
        assert end == len(text)

    @pytest.mark.parametrize(
        "text",
        ["1e3 -2.5E-2", "+1 .5", "1. 2"],
    )
    def test_number_formats(self, text):
        geom = wkgeom.wkt.decode(f"POINT ({text})")
        x, y = (float(v) for v in text.split())
        assert geom == Point(x, y)

    @pytest.mark.parametrize(
        "text, x, y",
        [
            ("nan nan", math.nan, math.nan),
            ("NaN 1", math.nan, 1.0),
            ("inf -inf", math.inf, -math.inf),
            ("-Infinity +INF", -math.inf, math.inf),
        ],
    )
    def test_non_finite_numbers(self, text, x, y):
        geom = wkgeom.wkt.decode(f"POINT ({text})")
        for value, sol in [(geom.x, x), (geom.y, y)]:
            if math.isnan(sol):
                assert math.isnan(value)
            else:
                assert value == sol

    def test_non_finite_wkb_point_roundtrips_through_wkt(self):
        msg = struct.pack("<BI2d", 1, 1, math.nan, math.inf)
        text = wkgeom.create_from_wkb(msg).to_wkt()
        assert text == "POINT (nan inf)"
        geom = wkgeom.wkt.decode(text)
        assert math.isnan(geom.x)
        assert geom.y == math.inf

    def test_decode_bytes(self):
        assert wkgeom.wkt.decode(b"POINT (1 2)") == Point(1, 2)

    def test_decode_attaches_srs(self, srs):
        geom = wkgeom.wkt.Decoder(srs=srs).decode("GEOMETRYCOLLECTION (POINT (1 2))")
        assert geom.srs is srs
        assert geom.geoms[0].srs is srs
        assert srs.reference_count == 3

    def test_decoder_repr(self):
        assert repr(wkgeom.wkt.Decoder()) == "wkgeom.wkt.Decoder(srs=None, max_depth=32)"

    def test_import_in_place(self):
        geom = Polygon()
        end = geom.import_from_wkt("xx POLYGON ((0 0,1 0,0 1,0 0))", pos=2)
        assert end == 30
        assert geom.exterior_ring.num_points == 4

    def test_import_releases_replaced_members(self, srs):
        geom = GeometryCollection([Point(1, 2, srs=srs)])
        geom.import_from_wkt("GEOMETRYCOLLECTION EMPTY")
        assert geom.is_empty
        assert srs.reference_count == 1

    def test_import_keyword_mismatch(self):
        geom = Point(1, 2)
        with pytest.raises(UnsupportedGeometryType, match="Expected POINT, got LINESTRING"):
            geom.import_from_wkt("LINESTRING (1 2,3 4)")
        assert geom == Point(1, 2)


class TestDecodeErrors:
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_no_keyword(self, text):
        with pytest.raises(CorruptData, match="Expected a WKT geometry keyword"):
            wkgeom.create_from_wkt(text)

    def test_token_too_long(self):
        with pytest.raises(CorruptData, match="too long"):
            wkgeom.create_from_wkt("X" * 100)

    @pytest.mark.parametrize("keyword", ["CIRCLE", "LINEARRING", "TIN", "POINTZ"])
    def test_unsupported_keyword(self, keyword):
        with pytest.raises(UnsupportedGeometryType, match=keyword):
            wkgeom.create_from_wkt(f"{keyword} (1 2)")

    def test_polygon_without_body(self, srs):
        with pytest.raises(CorruptData, match="Expected '\\('"):
            wkgeom.create_from_wkt("POLYGON", srs)
        assert srs.reference_count == 1

    @pytest.mark.parametrize(
        "text",
        [
            "POINT (1 x)",
            "POINT (1)",
            "POINT (1 2",
            "POINT (1 2 3 4)",
            "POINT (1 2,3 4)",
            "POINT (nanx 1)",
            "POINT (infin 1)",
            "POINT ()",
            "POINT EMPTY",
            "LINESTRING (1 2,)",
            "LINESTRING (1 2;3 4)",
            "LINESTRING 1 2",
            "POLYGON ((0 0,1 0,0 1,0 0)",
            "POLYGON (0 0,1 0,0 1,0 0)",
            "MULTIPOINT ((1 2,3 4))",
            "MULTIPOLYGON ((0 0,1 0,0 1,0 0))",
            "GEOMETRYCOLLECTION (POINT (1 2),)",
            "GEOMETRYCOLLECTION ((1 2))",
        ],
    )
    def test_malformed(self, text):
        with pytest.raises(CorruptData):
            wkgeom.create_from_wkt(text)

    def test_failed_member_aborts_collection(self, srs):
        with pytest.raises(UnsupportedGeometryType):
            wkgeom.create_from_wkt("GEOMETRYCOLLECTION (POINT (1 2),CIRCLE (0 0))", srs)
        assert srs.reference_count == 1

    def test_trailing_characters(self, srs):
        with pytest.raises(CorruptData, match="Trailing characters at position 11"):
            wkgeom.wkt.decode("POINT (1 2) POINT (3 4)", srs=srs)
        assert srs.reference_count == 1

    def test_invalid_utf8(self):
        with pytest.raises(CorruptData, match="UTF-8"):
            wkgeom.wkt.decode(b"POINT (1 2)\xff")

    def test_depth_limit(self):
        geom = wkgeom.wkt.decode(nested_collections_wkt(wkgeom.MAX_DEPTH))
        assert isinstance(geom, GeometryCollection)

        with pytest.raises(CorruptData, match="maximum depth of 32"):
            wkgeom.wkt.decode(nested_collections_wkt(wkgeom.MAX_DEPTH + 1))

    def test_configurable_depth_limit(self):
        dec = wkgeom.wkt.Decoder(max_depth=2)
        dec.decode(nested_collections_wkt(2))
        with pytest.raises(CorruptData):
            dec.decode(nested_collections_wkt(3))

    def test_deeply_nested_input_doesnt_exhaust_stack(self):
        text = nested_collections_wkt(10000)
        with max_call_depth(400):
            with pytest.raises(CorruptData):
                wkgeom.wkt.decode(text)
