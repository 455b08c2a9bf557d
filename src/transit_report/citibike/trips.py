"""
Load Citi Bike trip records.

Trip CSVs come in three header styles:
- Legacy (2013-2020): starttime, stoptime, "start station name", "end station name"
- Legacy Title Case (2016-2017): "Start Time", "Stop Time", "Start Station Name", ...
- Modern (2021+): started_at, ended_at, start_station_name, end_station_name

All of them are normalized to the columns in TRIP_COLUMNS. Unparsable
timestamps become NaT and blank station names become missing; rows are
never dropped here.
"""

from pathlib import Path

import pandas as pd

from transit_report.errors import SchemaError

TRIP_COLUMNS = ["starttime", "stoptime", "start_station_name", "end_station_name"]

# snake_cased source header -> canonical column
TRIP_COLUMN_ALIASES = {
    "starttime": "starttime",
    "start_time": "starttime",
    "started_at": "starttime",
    "stoptime": "stoptime",
    "stop_time": "stoptime",
    "ended_at": "stoptime",
    "start_station_name": "start_station_name",
    "end_station_name": "end_station_name",
}


def _snake(name) -> str:
    return "_".join(str(name).strip().lower().split())


def detect_schema(columns) -> str:
    """Which Citi Bike header style a set of columns uses."""
    cols = {str(c).strip() for c in columns}
    lowered = {c.lower() for c in cols}
    if 'ride_id' in lowered or 'started_at' in lowered:
        return 'modern'
    elif 'Start Time' in cols:
        return 'legacy_titlecase'
    elif 'starttime' in lowered:
        return 'legacy'
    return 'unknown'


def _clean_name(value):
    if isinstance(value, str):
        return value.strip() or None
    return None


def normalize_trip_columns(raw: pd.DataFrame, source="<frame>") -> pd.DataFrame:
    """
    Map any supported header style onto TRIP_COLUMNS.

    Returns a new frame with exactly TRIP_COLUMNS; timestamps are datetime64
    (NaT when unparsable), station names are str or None.
    """
    renamed = raw.rename(columns=lambda c: TRIP_COLUMN_ALIASES.get(_snake(c), c))
    missing = [c for c in TRIP_COLUMNS if c not in renamed.columns]
    if missing:
        raise SchemaError(source, missing)

    df = renamed.loc[:, ~renamed.columns.duplicated()][TRIP_COLUMNS].copy()
    for col in ("starttime", "stoptime"):
        df[col] = pd.to_datetime(df[col], format="mixed", errors="coerce")
    for col in ("start_station_name", "end_station_name"):
        df[col] = df[col].map(_clean_name)

    return df.reset_index(drop=True)


def load_trips(path: Path) -> pd.DataFrame:
    """Read a trip CSV (plain, or a zip holding a single CSV) and normalize it."""
    raw = pd.read_csv(
        path,
        dtype=str,
        usecols=lambda c: _snake(c) in TRIP_COLUMN_ALIASES,
    )
    print(f"  Schema: {detect_schema(raw.columns)}")
    return normalize_trip_columns(raw, source=path)
