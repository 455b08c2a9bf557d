#!/usr/bin/env python3
"""
Build the transit report.

Runs the two independent pipelines and writes their charts:

1. Ridership trends: MTA daily ridership CSV -> clean -> long form ->
   missing-data chart + percent-change trend chart
2. Station activity: Citi Bike trip archive (downloaded once, then cached)
   -> extract -> filter -> station x hour aggregate -> colors -> heatmap PDF

A JSON run log (row counts per stage, outputs) is written to logs/.

Usage:
    python -m transit_report.report
    python -m transit_report.report --trips data/raw_csvs/JC-202109-citibike-tripdata.csv
    python -m transit_report.report --system nyc --year 2019 --month 6 --skip-ridership
"""

import argparse
import json
import sys
import zipfile
from datetime import datetime
from pathlib import Path

import pandas as pd
import requests

from transit_report import charts
from transit_report.citibike.stations import (
    aggregate_station_hours,
    filter_summary,
    filter_trips,
    map_color_channels,
)
from transit_report.citibike.trips import load_trips
from transit_report.config import (
    CHARTS_DIR,
    LOGS_DIR,
    RAW_CSVS_DIR,
    RAW_ZIPS_DIR,
    RIDERSHIP_CSV,
    STATION_HEATMAP_PDF,
    TRIP_MONTH,
    TRIP_SYSTEM,
    TRIP_YEAR,
)
from transit_report.download import fetch_trip_archive
from transit_report.errors import SchemaError, StageError
from transit_report.ingest import ensure_trip_csv
from transit_report.mta.ridership import load_ridership, reshape_ridership, summarize_missing

# Failures that end a stage (and the run)
STAGE_ERRORS = (
    OSError,
    zipfile.BadZipFile,
    requests.RequestException,
    pd.errors.ParserError,
    pd.errors.EmptyDataError,
    SchemaError,
)


def run_stage(stage: str, path, fn, *args, **kwargs):
    """Call fn, re-raising I/O and schema failures as StageError(stage, path)."""
    print(f"\n[{stage}] {path}")
    try:
        return fn(*args, **kwargs)
    except STAGE_ERRORS as e:
        raise StageError(stage, path, e) from e


def run_ridership(ridership_csv: Path = RIDERSHIP_CSV, charts_dir: Path = CHARTS_DIR) -> dict:
    """Ridership pipeline: load -> clean -> reshape -> render."""
    df = run_stage("load ridership", ridership_csv, load_ridership, ridership_csv)
    print(f"  Rows: {len(df):,}")

    missing = summarize_missing(df)
    for row in missing[missing["missing"] > 0].itertuples():
        print(f"  Missing {row.column}: {row.missing:,}")

    long_df = reshape_ridership(df)
    print(f"  Long form: {len(long_df):,} rows")

    missing_png = charts_dir / "ridership_missing.png"
    trends_png = charts_dir / "ridership_trends.png"
    run_stage("render missing data", missing_png, charts.plot_missing_data, df, missing_png)
    run_stage("render trends", trends_png, charts.plot_ridership_trends, long_df, trends_png)

    return {
        "input": str(ridership_csv),
        "rows": len(df),
        "long_rows": len(long_df),
        "missing": {r.column: int(r.missing) for r in missing.itertuples() if r.missing},
        "charts": [str(missing_png), str(trends_png)],
    }


def resolve_trips_csv(
    trips: Path = None,
    year: int = TRIP_YEAR,
    month: int = TRIP_MONTH,
    system: str = TRIP_SYSTEM,
    zips_dir: Path = RAW_ZIPS_DIR,
    csvs_dir: Path = RAW_CSVS_DIR,
) -> Path:
    """Local trip CSV to use: the given file, or the (cached) monthly archive's CSV."""
    if trips is not None and trips.suffix.lower() != ".zip":
        return trips

    if trips is None:
        label = f"{system.upper()} {year}-{month:02d}"
        trips = run_stage("download trips", label, fetch_trip_archive, year, month, zips_dir, system)

    return run_stage("extract trips", trips, ensure_trip_csv, trips, csvs_dir)


def run_station_activity(trips_csv: Path, output_file: Path = STATION_HEATMAP_PDF) -> dict:
    """Station pipeline: load -> filter -> aggregate -> scale -> render."""
    trips = run_stage("load trips", trips_csv, load_trips, trips_csv)

    kept = filter_trips(trips)
    summary = filter_summary(trips, kept)
    print(f"  Trips: {summary['trips_in']:,} (kept {summary['trips_kept']:,}, dropped {summary['trips_dropped']:,})")
    if kept.empty:
        raise StageError("filter trips", trips_csv, ValueError("no trips left after filtering"))

    agg = aggregate_station_hours(kept)
    colored = map_color_channels(agg)
    print(f"  Buckets: {len(colored):,} ({colored['station_name'].nunique():,} stations x 24 hours)")

    run_stage("render station heatmap", output_file, charts.plot_station_heatmap, colored, output_file)

    return {
        "input": str(trips_csv),
        "filter": summary,
        "buckets": len(colored),
        "max_activity": float(agg["activity"].max()) if len(agg) else 0.0,
        "max_abs_balance": int(agg["balance"].abs().max()) if len(agg) else 0,
        "charts": [str(output_file)],
    }


def write_run_log(results: dict, logs_dir: Path = LOGS_DIR) -> Path:
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    with open(log_path, 'w') as f:
        json.dump({'timestamp': datetime.now().isoformat(), **results}, f, indent=2, default=str)
    return log_path


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build the MTA ridership / Citi Bike station report")
    parser.add_argument("--ridership-csv", type=Path, default=RIDERSHIP_CSV,
                        help=f"MTA daily ridership CSV (default: {RIDERSHIP_CSV})")
    parser.add_argument("--trips", type=Path, default=None,
                        help="Trip CSV or zip; if omitted the monthly archive is downloaded")
    parser.add_argument("--system", choices=['jc', 'nyc'], default=TRIP_SYSTEM,
                        help=f"Bike share system for the download (default: {TRIP_SYSTEM})")
    parser.add_argument("--year", type=int, default=TRIP_YEAR, help=f"Archive year (default: {TRIP_YEAR})")
    parser.add_argument("--month", type=int, default=TRIP_MONTH, help=f"Archive month (default: {TRIP_MONTH})")
    parser.add_argument("--output", "-o", type=Path, default=STATION_HEATMAP_PDF,
                        help=f"Station heatmap PDF (default: {STATION_HEATMAP_PDF})")
    parser.add_argument("--charts-dir", type=Path, default=CHARTS_DIR,
                        help=f"Directory for the ridership charts (default: {CHARTS_DIR})")
    parser.add_argument("--logs-dir", type=Path, default=LOGS_DIR, help="Run log directory")
    parser.add_argument("--skip-ridership", action="store_true", help="Skip the ridership pipeline")
    parser.add_argument("--skip-stations", action="store_true", help="Skip the station pipeline")

    args = parser.parse_args(argv)

    results = {}
    try:
        if not args.skip_ridership:
            print("=== Ridership trends ===")
            results['ridership'] = run_ridership(args.ridership_csv, args.charts_dir)

        if not args.skip_stations:
            print("\n=== Station activity ===")
            trips_csv = resolve_trips_csv(args.trips, args.year, args.month, args.system)
            results['stations'] = run_station_activity(trips_csv, args.output)

    except StageError as e:
        print(f"\n✗ {e}")
        sys.exit(1)

    log_path = write_run_log(results, args.logs_dir)
    print(f"\n✓ Report complete")
    print(f"✓ Log saved to {log_path}")


if __name__ == "__main__":
    main()
