"""
Default paths and constants for the transit report.

Everything here can be overridden from the command line (see report.py);
the values below are what a plain `python -m transit_report.report` uses.
"""

from pathlib import Path

ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = ROOT_DIR / "data"
RAW_ZIPS_DIR = DATA_DIR / "raw_zips"
RAW_CSVS_DIR = DATA_DIR / "raw_csvs"
CHARTS_DIR = ROOT_DIR / "charts"
LOGS_DIR = ROOT_DIR / "logs"

# MTA Daily Ridership Data: Beginning 2020 (data.ny.gov, vxuj-8kew)
RIDERSHIP_CSV = DATA_DIR / "MTA_Daily_Ridership_Data__Beginning_2020.csv"

# Citi Bike monthly trip archives
TRIPDATA_BASE_URL = "https://s3.amazonaws.com/tripdata"
TRIP_SYSTEM = "jc"
TRIP_YEAR = 2021
TRIP_MONTH = 9

STATION_HEATMAP_PDF = CHARTS_DIR / "station_activity.pdf"
RIDERSHIP_TRENDS_PNG = CHARTS_DIR / "ridership_trends.png"
MISSING_DATA_PNG = CHARTS_DIR / "ridership_missing.png"

# Heatmap color channels (hue in degrees, chroma/luminance 0-100)
OUTFLOW_HUE = 10    # balance < 0
INFLOW_HUE = 250    # balance >= 0
CHANNEL_RANGE = (0, 100)

HEATMAP_FIGSIZE = (8, 11)

# Modes left out of the trend chart (still present in the reshaped table)
EXCLUDED_TREND_MODES = ("access_ride",)
