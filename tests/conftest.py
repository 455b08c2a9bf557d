import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

RIDERSHIP_HEADER = [
    "Date",
    "Subways: Total Estimated Ridersip",
    "Subways: % of Comparable Pre-Pandemic Day",
    "Buses: Total Estimated Ridership",
    "Buses: % of Comparable Pre-Pandemic Day",
    "LIRR: Total Estimated Ridership",
    "LIRR: % of Comparable Pre-Pandemic Day",
    "Metro-North: Total Estimated Ridership",
    "Metro-North: % of Comparable Pre-Pandemic Day",
    "Access-A-Ride: Total Scheduled Trips",
    "Access-A-Ride: % of Comparable Pre-Pandemic Day",
    "Bridges and Tunnels: Total Traffic",
    "Bridges and Tunnels: % of Comparable Pre-Pandemic Day",
]

RIDERSHIP_ROWS = [
    ["03/01/2021", "2205710", "42.4%", "1138432", "60%", "97470", "31%", "64350", "22%", "18231", "76%", "781434", "93%"],
    ["03/02/2021", "2240301", "41.8%", "1151090", "61%", "99322", "32%", "64907", "22%", "17942", "74%", "819225", "91%"],
    ["03/03/2021", "2259581", "42%", "1156013", "61%", "", "", "n/a", "", "18355", "75%", "832109", "93%"],
    ["not a date", "2188002", "40.9%", "1101133", "58%", "92244", "30%", "63551", "21%", "17876", "74%", "849015", "95%"],
]


@pytest.fixture
def raw_ridership():
    return pd.DataFrame(RIDERSHIP_ROWS, columns=RIDERSHIP_HEADER)


@pytest.fixture
def ridership_csv(tmp_path, raw_ridership):
    path = tmp_path / "ridership.csv"
    raw_ridership.to_csv(path, index=False)
    return path


def make_trips(rows):
    """rows: (start_station, end_station, starttime, stoptime)"""
    df = pd.DataFrame(rows, columns=["start_station_name", "end_station_name", "starttime", "stoptime"])
    df["starttime"] = pd.to_datetime(df["starttime"])
    df["stoptime"] = pd.to_datetime(df["stoptime"])
    return df


@pytest.fixture
def trips():
    return make_trips([
        ("A", "B", "2021-09-01 08:15", "2021-09-01 08:30"),
        ("B", "A", "2021-09-01 08:45", "2021-09-01 09:05"),
        ("A", "C", "2021-09-01 17:10", "2021-09-01 17:40"),
        ("C", "A", "2021-09-02 07:55", "2021-09-02 08:20"),
        ("B", "Z", "2021-09-02 12:00", "2021-09-02 12:20"),   # Z never a start station
        ("A", None, "2021-09-02 13:00", "2021-09-02 13:30"),  # no end station
        (None, None, "2021-09-02 14:00", "2021-09-02 14:30"),
    ])
