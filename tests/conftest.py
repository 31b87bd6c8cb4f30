import geopandas as gp
import matplotlib
import pandas as pd
import pytest
from shapely.geometry import box

matplotlib.use("Agg")


@pytest.fixture
def raw_permits():
    return pd.DataFrame(
        {
            "EventID": ["1", "2", "3", "4"],
            "Category": ["Television", "Film", "Television", "Commercial"],
            "Borough": ["Manhattan", "Brooklyn", "manhattan", "Queens"],
            "ZipCode(s)": ["10001,10002", "11201", "10001", "11101, 11102, 11103"],
            "StartDateTime": [
                "01/02/2018 10:00:00",
                "01/02/2018 14:00:00",
                "01/09/2018 09:00:00",
                "03/15/2018 06:00:00 AM",
            ],
            "EndDateTime": [
                "01/02/2018 18:00:00",
                "01/03/2018 02:00:00",
                "01/09/2018 21:00:00",
                "03/15/2018 08:00:00 PM",
            ],
            "EnteredOn": [
                "12/28/2017 11:15:00",
                "12/29/2017 16:40:00",
                "01/05/2018 08:05:00",
                "03/01/2018 01:30:00 PM",
            ],
        },
        dtype="string",
    )


@pytest.fixture
def boundaries():
    return gp.GeoDataFrame(
        {
            "zip_code": [10001, 10002, 11201, 10475],
            "geometry": [box(0, 0, 1, 1), box(1, 0, 2, 1), box(0, 1, 1, 2), box(1, 1, 2, 2)],
        },
        crs="EPSG:4326",
    )


@pytest.fixture
def income():
    return pd.DataFrame(
        {
            "zip_code": pd.array([10001, 10002, 11201], dtype="Int64"),
            "avg_income": [98000.0, 41000.0, 87000.0],
        }
    )
