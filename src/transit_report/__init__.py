# Transit ridership report
#
# Two independent pipelines:
#
# - mta/ridership.py: MTA daily ridership, cleaned and reshaped to long form
# - citibike/stations.py: Citi Bike trips aggregated per station and hour
#
# Supporting scripts:
# - download.py: Fetch monthly trip archives from S3 (cached)
# - ingest.py: Extract CSVs from trip archives
# - charts.py: Render the report charts
# - report.py: Run everything end to end
#
# Usage:
#   python -m transit_report.report
