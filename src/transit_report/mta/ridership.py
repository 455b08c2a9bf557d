#!/usr/bin/env python3
"""
Load and reshape MTA Daily Ridership Data

The source CSV (data.ny.gov, "MTA Daily Ridership Data: Beginning 2020") has
one row per day and two columns per transportation mode: an estimated total
and a percentage of the comparable pre-pandemic day, written as text ("42.4%").

Pipeline:
1. clean_ridership: rename to <mode>_total / <mode>_change, strip "%",
   parse MM/DD/YYYY dates, coerce numbers (bad values become NaN/NaT)
2. reshape_ridership: long form (date, transportation_type, change) where
   change = percent - 100, i.e. 0 means "same as before the pandemic"

Missing observations stay missing; nothing is imputed.

Usage:
    python -m transit_report.mta.ridership
    python -m transit_report.mta.ridership --input path/to/ridership.csv --charts-dir charts/
"""

import argparse
from pathlib import Path

import pandas as pd

from transit_report.config import (
    CHARTS_DIR,
    EXCLUDED_TREND_MODES,
    RIDERSHIP_CSV,
)
from transit_report.errors import SchemaError

MODES = ["subway", "bus", "lirr", "mta", "access_ride", "bridge_tunnel"]

DATE_FORMAT = "%m/%d/%Y"

# Source heading -> column name. Older exports misspell "Ridership".
RIDERSHIP_COLUMNS = {
    "Date": "date",
    "Subways: Total Estimated Ridership": "subway_total",
    "Subways: Total Estimated Ridersip": "subway_total",
    "Subways: % of Comparable Pre-Pandemic Day": "subway_change",
    "Buses: Total Estimated Ridership": "bus_total",
    "Buses: Total Estimated Ridersip": "bus_total",
    "Buses: % of Comparable Pre-Pandemic Day": "bus_change",
    "LIRR: Total Estimated Ridership": "lirr_total",
    "LIRR: Total Estimated Ridersip": "lirr_total",
    "LIRR: % of Comparable Pre-Pandemic Day": "lirr_change",
    "Metro-North: Total Estimated Ridership": "mta_total",
    "Metro-North: Total Estimated Ridersip": "mta_total",
    "Metro-North: % of Comparable Pre-Pandemic Day": "mta_change",
    "Access-A-Ride: Total Scheduled Trips": "access_ride_total",
    "Access-A-Ride: % of Comparable Pre-Pandemic Day": "access_ride_change",
    "Bridges and Tunnels: Total Traffic": "bridge_tunnel_total",
    "Bridges and Tunnels: % of Comparable Pre-Pandemic Day": "bridge_tunnel_change",
}

VALUE_COLUMNS = [f"{mode}_{kind}" for mode in MODES for kind in ("total", "change")]
CLEAN_COLUMNS = ["date"] + VALUE_COLUMNS


def _strip_numeric_text(series: pd.Series) -> pd.Series:
    """'42.4%' -> '42.4', '1,234' -> '1234'. Numbers in a mixed column are kept."""
    if pd.api.types.is_numeric_dtype(series):
        return series
    text = series.map(lambda v: v if pd.isna(v) else str(v)).astype(object)
    return (
        text.str.strip()
        .str.replace(",", "", regex=False)
        .str.replace(r"%$", "", regex=True)
    )


def clean_ridership(raw: pd.DataFrame, source="<frame>") -> pd.DataFrame:
    """
    Rename, retype and de-duplicate a raw ridership frame.

    Args:
        raw: Frame with the human-readable source headings
        source: Where the frame came from (used in error messages)

    Returns:
        Frame with columns `date` followed by <mode>_total, <mode>_change for
        every mode in MODES. Columns absent from the source are all-NaN.
    """
    renamed = raw.rename(columns=lambda c: RIDERSHIP_COLUMNS.get(str(c).strip(), c))
    if "date" not in renamed.columns:
        raise SchemaError(source, ["Date"])

    absent = [c for c in VALUE_COLUMNS if c not in renamed.columns]
    if absent:
        print(f"  Warning: {len(absent)} column(s) not in {source}, left empty: {', '.join(absent)}")

    df = renamed.loc[:, ~renamed.columns.duplicated()].reindex(columns=CLEAN_COLUMNS)

    df["date"] = pd.to_datetime(
        df["date"].astype("string").str.strip(), format=DATE_FORMAT, errors="coerce"
    )
    for col in VALUE_COLUMNS:
        # mta_total arrives as text in some exports; every column gets the same treatment
        df[col] = pd.to_numeric(_strip_numeric_text(df[col]), errors="coerce")

    # A re-exported day shows up twice; keep the first
    dupes = df["date"].notna() & df["date"].duplicated()
    if dupes.any():
        print(f"  Dropped {int(dupes.sum())} duplicate date row(s)")
        df = df[~dupes]

    return df.reset_index(drop=True)


def load_ridership(path: Path = RIDERSHIP_CSV) -> pd.DataFrame:
    """Read the ridership CSV as text and clean it."""
    raw = pd.read_csv(path, dtype=str, keep_default_na=True)
    return clean_ridership(raw, source=path)


def missing_matrix(df: pd.DataFrame) -> pd.DataFrame:
    """Row-major presence matrix: True where a value was observed."""
    return df.notna()


def summarize_missing(df: pd.DataFrame) -> pd.DataFrame:
    """
    Missing values per column, with the first and last date they occur on.

    The percentage columns have bounded gaps (e.g. a mode that was not
    reported for a stretch of days); this makes those ranges visible.
    """
    rows = []
    for col in df.columns:
        if col == "date":
            continue
        missing = df[col].isna()
        dates = df.loc[missing, "date"].dropna()
        rows.append({
            "column": col,
            "missing": int(missing.sum()),
            "first_missing": dates.min() if not dates.empty else pd.NaT,
            "last_missing": dates.max() if not dates.empty else pd.NaT,
        })
    return pd.DataFrame(rows, columns=["column", "missing", "first_missing", "last_missing"])


def reshape_ridership(df: pd.DataFrame) -> pd.DataFrame:
    """
    Pivot the *_change columns to long form.

    Returns:
        Frame with columns date, transportation_type, change. Rows keep the
        date order of the input; within a date, modes follow MODES order.
    """
    change_cols = [c for c in df.columns if c.endswith("_change")]
    wide = df[["date"] + change_cols].rename(
        columns={c: c[: -len("_change")] for c in change_cols}
    )
    wide = wide.assign(_row=range(len(wide)))

    long_df = wide.melt(
        id_vars=["_row", "date"],
        var_name="transportation_type",
        value_name="change",
    )
    long_df = (
        long_df.sort_values("_row", kind="stable")
        .drop(columns="_row")
        .reset_index(drop=True)
    )
    long_df["change"] = long_df["change"] - 100
    return long_df


def trend_frame(long_df: pd.DataFrame, exclude=EXCLUDED_TREND_MODES) -> pd.DataFrame:
    """Rows to draw on the trend chart (modes in `exclude` left out)."""
    return long_df[~long_df["transportation_type"].isin(exclude)].reset_index(drop=True)


def _day(ts) -> str:
    return "?" if pd.isna(ts) else ts.strftime("%Y-%m-%d")


def main():
    parser = argparse.ArgumentParser(description="Clean and reshape MTA daily ridership")
    parser.add_argument("--input", "-i", type=Path, default=RIDERSHIP_CSV,
                        help=f"Ridership CSV (default: {RIDERSHIP_CSV})")
    parser.add_argument("--charts-dir", type=Path, default=None,
                        help=f"Also render charts into this directory (e.g. {CHARTS_DIR})")
    args = parser.parse_args()

    print(f"Loading ridership from {args.input}")
    df = load_ridership(args.input)
    print(f"  Rows: {len(df):,}")
    print(f"  Dates: {_day(df['date'].min())} to {_day(df['date'].max())}")

    print("\nMissing values:")
    for row in summarize_missing(df).itertuples():
        if row.missing:
            print(f"  {row.column}: {row.missing:,} ({_day(row.first_missing)} to {_day(row.last_missing)})")

    long_df = reshape_ridership(df)
    print(f"\nReshaped: {len(long_df):,} rows")
    latest = long_df[long_df["date"] == df["date"].max()]
    for row in latest.itertuples():
        print(f"  {row.transportation_type:>14}: {row.change:+.1f}%")

    if args.charts_dir:
        from transit_report.charts import plot_missing_data, plot_ridership_trends

        args.charts_dir.mkdir(parents=True, exist_ok=True)
        plot_missing_data(df, args.charts_dir / "ridership_missing.png")
        plot_ridership_trends(long_df, args.charts_dir / "ridership_trends.png")
        print(f"\n✓ Charts saved to {args.charts_dir}")


if __name__ == "__main__":
    main()
