# MTA ridership data
#
# - ridership.py: Load, clean and reshape the daily ridership CSV
#
# Usage:
#   python -m transit_report.mta.ridership --input data/MTA_Daily_Ridership_Data__Beginning_2020.csv
