import pytest

import wkgeom


@pytest.fixture
def srs():
    return wkgeom.SpatialReference('GEOGCS["WGS 84"]')


@pytest.fixture(params=[wkgeom.WKB_NDR, wkgeom.WKB_XDR], ids=["ndr", "xdr"])
def byte_order(request):
    return request.param
