#!/usr/bin/env python3
"""
Extract Citi Bike trip CSVs from a downloaded archive, handling:
- Nested zip files (zips inside zips)
- __MACOSX folders
- Multiple CSVs per archive (for months with >1M trips)

Extraction happens once; a CSV already present in the destination is reused.

Usage:
    python -m transit_report.ingest data/raw_zips/JC-202109-citibike-tripdata.csv.zip
"""

import argparse
import zipfile
from pathlib import Path
from typing import List

from transit_report.config import RAW_CSVS_DIR


def _is_metadata(name: str) -> bool:
    return '__MACOSX' in name or Path(name).name.startswith('.')


def extract_zip(zip_path: Path, dest_dir: Path) -> List[Path]:
    """
    Extract the CSV members of a zip file, recursing into nested zips.
    Returns the extracted CSV paths in archive order.
    """
    zip_path = Path(zip_path)
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)
    extracted = []

    with zipfile.ZipFile(zip_path, 'r') as zf:
        for name in zf.namelist():
            # Skip macOS metadata and directories
            if _is_metadata(name) or name.endswith('/'):
                continue

            if name.lower().endswith('.csv'):
                dest_path = dest_dir / Path(name).name

                if dest_path.exists():
                    print(f"    Already extracted: {dest_path.name}")
                else:
                    # .part until complete
                    partial = dest_path.with_name(dest_path.name + ".part")
                    with zf.open(name) as src, open(partial, 'wb') as dst:
                        dst.write(src.read())
                    partial.replace(dest_path)
                    print(f"    Extracted: {dest_path.name} ({dest_path.stat().st_size:,} bytes)")

                extracted.append(dest_path)

            elif name.lower().endswith('.zip'):
                print(f"    Found nested zip: {name}")
                nested_path = dest_dir / "_nested" / Path(name).name
                nested_path.parent.mkdir(parents=True, exist_ok=True)

                with zf.open(name) as src, open(nested_path, 'wb') as dst:
                    dst.write(src.read())

                try:
                    extracted.extend(extract_zip(nested_path, dest_dir))
                finally:
                    nested_path.unlink()
                    if not any(nested_path.parent.iterdir()):
                        nested_path.parent.rmdir()

    return extracted


def ensure_trip_csv(zip_path: Path, dest_dir: Path = RAW_CSVS_DIR) -> Path:
    """Extract a trip archive (if needed) and return its first CSV."""
    csvs = extract_zip(zip_path, dest_dir)
    if not csvs:
        raise FileNotFoundError(f"No CSV found in archive {zip_path}")
    if len(csvs) > 1:
        print(f"    {len(csvs)} CSVs in archive, using {csvs[0].name}")
    return csvs[0]


def main():
    parser = argparse.ArgumentParser(description="Extract a Citi Bike trip archive")
    parser.add_argument("zip_path", type=Path, help="Archive to extract")
    parser.add_argument("--dest", type=Path, default=RAW_CSVS_DIR,
                        help="Destination directory for CSVs")

    args = parser.parse_args()

    print(f"{args.zip_path.name}:")
    csvs = extract_zip(args.zip_path, args.dest)
    print(f"\n✓ {len(csvs)} CSV file(s) in {args.dest}")


if __name__ == "__main__":
    main()
