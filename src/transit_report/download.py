#!/usr/bin/env python3
"""
Download a monthly Citi Bike trip archive from S3.

The archive is fetched once and cached under data/raw_zips; later runs
reuse the local copy.

Handles the naming conventions used over the years:
- 201801-citibike-tripdata.csv.zip (NYC, monthly through 2023)
- 202401-citibike-tripdata.zip (NYC, 2024+, no .csv in name)
- JC-202109-citibike-tripdata.csv.zip (Jersey City)
- JC-201708 citibike-tripdata.csv.zip, JC-202207-citbike-tripdata.csv.zip (JC quirks)

Usage:
    python -m transit_report.download                        # JC 2021-09
    python -m transit_report.download --system nyc --year 2019 --month 6
"""

import argparse
from pathlib import Path
from typing import Tuple

import requests
from tqdm import tqdm

from transit_report.config import (
    RAW_ZIPS_DIR,
    TRIP_MONTH,
    TRIP_SYSTEM,
    TRIP_YEAR,
    TRIPDATA_BASE_URL,
)

# Known JC filename quirks (year, month) -> actual filename
JC_FILENAME_OVERRIDES = {
    (2017, 8): "JC-201708 citibike-tripdata.csv.zip",  # Space instead of dash
    (2022, 7): "JC-202207-citbike-tripdata.csv.zip",   # Typo: citbike
    (2025, 10): "JC-202510-citibike-tripdata.zip",     # No .csv
}


def get_download_url(year: int, month: int, system: str = TRIP_SYSTEM) -> Tuple[str, str]:
    """
    Generate the S3 URL for a given year/month.
    Returns (url, filename).
    """
    ym = f"{year}{month:02d}"

    if system == "jc":
        filename = JC_FILENAME_OVERRIDES.get((year, month), f"JC-{ym}-citibike-tripdata.csv.zip")
    elif system == "nyc":
        # 2024+ uses .zip instead of .csv.zip
        if year >= 2024:
            filename = f"{ym}-citibike-tripdata.zip"
        else:
            filename = f"{ym}-citibike-tripdata.csv.zip"
    else:
        raise ValueError(f"Unknown system: {system!r} (expected 'jc' or 'nyc')")

    url = f"{TRIPDATA_BASE_URL}/{filename.replace(' ', '%20')}"
    return url, filename


def alternate_filenames(year: int, month: int, system: str = TRIP_SYSTEM) -> list:
    """Other filenames the same month has been published under."""
    ym = f"{year}{month:02d}"
    prefix = "JC-" if system == "jc" else ""
    names = [
        f"{prefix}{ym}-citibike-tripdata.csv.zip",
        f"{prefix}{ym}-citibike-tripdata.zip",
    ]
    if system == "jc":
        names += [
            f"JC-{ym}-citbike-tripdata.csv.zip",   # Typo
            f"JC-{ym} citibike-tripdata.csv.zip",  # Space
        ]
    return names


def download_file(url: str, dest_path: Path, skip_existing: bool = True) -> bool:
    """
    Download a file with progress bar.
    Returns True if downloaded, False if skipped or not found.
    """
    if skip_existing and dest_path.exists():
        print(f"  Skipping (exists): {dest_path.name}")
        return False

    try:
        response = requests.get(url, stream=True, timeout=30)
        response.raise_for_status()

        total_size = int(response.headers.get('content-length', 0))

        # .part until complete
        partial = dest_path.with_name(dest_path.name + ".part")
        with open(partial, 'wb') as f:
            with tqdm(total=total_size, unit='B', unit_scale=True, desc=dest_path.name) as pbar:
                for chunk in response.iter_content(chunk_size=8192):
                    f.write(chunk)
                    pbar.update(len(chunk))
        partial.replace(dest_path)

        return True

    except requests.HTTPError as e:
        if e.response is not None and e.response.status_code == 404:
            return False
        raise


def fetch_trip_archive(
    year: int = TRIP_YEAR,
    month: int = TRIP_MONTH,
    output_dir: Path = RAW_ZIPS_DIR,
    system: str = TRIP_SYSTEM,
) -> Path:
    """
    Make sure the archive for year/month is available locally.

    Returns the path of the cached zip. Raises FileNotFoundError when no
    published filename for that month could be downloaded.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    url, filename = get_download_url(year, month, system)
    dest = output_dir / filename

    if dest.exists():
        print(f"  Using cached archive: {dest.name}")
        return dest

    if download_file(url, dest, skip_existing=False):
        return dest

    for alt_filename in alternate_filenames(year, month, system):
        if alt_filename == filename:
            continue
        alt_dest = output_dir / alt_filename
        if alt_dest.exists():
            return alt_dest
        alt_url = f"{TRIPDATA_BASE_URL}/{alt_filename.replace(' ', '%20')}"
        if download_file(alt_url, alt_dest, skip_existing=False):
            print(f"    (used alternate filename: {alt_filename})")
            return alt_dest

    raise FileNotFoundError(
        f"No {system.upper()} trip archive found for {year}-{month:02d} at {TRIPDATA_BASE_URL}"
    )


def main():
    parser = argparse.ArgumentParser(description="Download a Citi Bike trip archive")
    parser.add_argument("--system", choices=['jc', 'nyc'], default=TRIP_SYSTEM,
                        help=f"Bike share system (default: {TRIP_SYSTEM})")
    parser.add_argument("--year", type=int, default=TRIP_YEAR, help=f"Year (default: {TRIP_YEAR})")
    parser.add_argument("--month", type=int, default=TRIP_MONTH, help=f"Month 1-12 (default: {TRIP_MONTH})")
    parser.add_argument("--output-dir", type=Path, default=RAW_ZIPS_DIR, help="Output directory")

    args = parser.parse_args()

    print(f"Fetching {args.system.upper()} trip data for {args.year}-{args.month:02d}")
    print(f"Output directory: {args.output_dir}")

    path = fetch_trip_archive(args.year, args.month, args.output_dir, args.system)
    print(f"\n✓ Archive ready: {path}")


if __name__ == "__main__":
    main()
