# Citi Bike trip data
#
# - trips.py: Load trip CSVs and normalize legacy/modern schemas
# - stations.py: Filter trips and aggregate station activity by hour
