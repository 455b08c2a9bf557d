#!/usr/bin/env python3
"""
Station activity and balance by hour of day.

Each trip is seen from both ends: a departure at the start station (at
starttime) and an arrival at the end station (at stoptime). Events are
bucketed per (station, hour of day) over the whole input period:

- activity: number of events in the bucket (departures + arrivals)
- balance: departures - arrivals

Every observed station gets all 24 hours, zero-filled, so the result is a
complete station x hour grid. The grid is then mapped to colors:
hue from the sign of balance, chroma from |balance|, luminance from activity.

Usage:
    python -m transit_report.citibike.stations data/raw_csvs/JC-202109-citibike-tripdata.csv
    python -m transit_report.citibike.stations trips.csv --output charts/station_activity.pdf
"""

import argparse
from pathlib import Path

import pandas as pd

from transit_report.colors import classify_hue, hcl_to_hex, rescale
from transit_report.config import (
    CHANNEL_RANGE,
    INFLOW_HUE,
    OUTFLOW_HUE,
    STATION_HEATMAP_PDF,
)

HOURS = [f"{h:02d}" for h in range(24)]

AGGREGATE_COLUMNS = ["station_name", "hour", "departures", "arrivals", "activity", "balance"]


def filter_trips(trips: pd.DataFrame, until_stable: bool = True) -> pd.DataFrame:
    """
    Keep trips whose end station is also somewhere a trip starts.

    A row survives when at least one station name is present and its
    end_station_name is in the set of start_station_name values of the
    frame. Dropping rows can remove a station from that set, so by default
    the filter is re-applied until nothing changes; the result is then a
    fixed point (filtering it again returns it unchanged). The default is
    therefore not the literal one-pass filter: pass until_stable=False to
    evaluate the membership test exactly once over the whole input.
    """
    kept = trips
    while True:
        starts = set(kept["start_station_name"].dropna())
        has_station = kept["start_station_name"].notna() | kept["end_station_name"].notna()
        end_known = kept["end_station_name"].isin(starts)
        mask = has_station & end_known

        if mask.all():
            break
        kept = kept[mask]
        if not until_stable:
            break

    return kept.reset_index(drop=True)


def filter_summary(before: pd.DataFrame, after: pd.DataFrame) -> dict:
    """Row and station counts on either side of filter_trips."""
    def stations(df):
        return len(set(df["start_station_name"].dropna()) | set(df["end_station_name"].dropna()))

    return {
        "trips_in": len(before),
        "trips_kept": len(after),
        "trips_dropped": len(before) - len(after),
        "missing_start_station": int(before["start_station_name"].isna().sum()),
        "missing_end_station": int(before["end_station_name"].isna().sum()),
        "stations_in": stations(before),
        "stations_kept": stations(after),
    }


def trip_events(trips: pd.DataFrame) -> pd.DataFrame:
    """
    One row per trip end: station_name, event_type, timestamp, hour.

    hour is the zero-padded hour of day ("00".."23"). Ends with no station
    or no timestamp produce no event.
    """
    departures = pd.DataFrame({
        "station_name": trips["start_station_name"],
        "event_type": "departure",
        "timestamp": trips["starttime"],
    })
    arrivals = pd.DataFrame({
        "station_name": trips["end_station_name"],
        "event_type": "arrival",
        "timestamp": trips["stoptime"],
    })
    events = pd.concat([departures, arrivals], ignore_index=True)
    events = events.dropna(subset=["station_name", "timestamp"]).reset_index(drop=True)
    events["timestamp"] = pd.to_datetime(events["timestamp"])
    events["hour"] = events["timestamp"].dt.strftime("%H")
    return events


def aggregate_station_hours(trips: pd.DataFrame) -> pd.DataFrame:
    """
    Count events per (station_name, hour) over the full station x 24-hour grid.

    activity is a float event count over the whole period, not an average
    per day. balance = departures - arrivals and may be negative.

    Returns:
        Frame with AGGREGATE_COLUMNS, sorted by station then hour.
    """
    events = trip_events(trips)
    if events.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    stations = sorted(events["station_name"].unique())
    grid = pd.MultiIndex.from_product([stations, HOURS], names=["station_name", "hour"])

    counts = (
        events.groupby(["station_name", "hour", "event_type"])
        .size()
        .unstack("event_type", fill_value=0)
        .reindex(columns=["departure", "arrival"], fill_value=0)
        .reindex(grid, fill_value=0)
    )

    agg = pd.DataFrame({
        "departures": counts["departure"].astype(int),
        "arrivals": counts["arrival"].astype(int),
    })
    agg["activity"] = (agg["departures"] + agg["arrivals"]).astype(float)
    agg["balance"] = (agg["departures"] - agg["arrivals"]).astype(int)

    return agg.reset_index()[AGGREGATE_COLUMNS]


def map_color_channels(
    agg: pd.DataFrame,
    outflow_hue=OUTFLOW_HUE,
    inflow_hue=INFLOW_HUE,
    channel_range=CHANNEL_RANGE,
) -> pd.DataFrame:
    """
    Add hue, saturation, luminance and the composite hex color per bucket.

    saturation rescales |balance| from [0, max |balance|] and luminance
    rescales activity from [0, max activity], both onto channel_range.
    """
    magnitude = agg["balance"].abs().astype(float)
    activity = agg["activity"].astype(float)

    hue = classify_hue(agg["balance"], outflow=outflow_hue, inflow=inflow_hue)
    saturation = rescale(magnitude, to=channel_range, src=(0, magnitude.max()))
    luminance = rescale(activity, to=channel_range, src=(0, activity.max()))

    return agg.assign(
        hue=hue,
        saturation=saturation,
        luminance=luminance,
        color=hcl_to_hex(hue.to_numpy(), saturation.to_numpy(), luminance.to_numpy()),
    )


def station_activity(trips: pd.DataFrame) -> pd.DataFrame:
    """filter_trips -> aggregate_station_hours -> map_color_channels."""
    return map_color_channels(aggregate_station_hours(filter_trips(trips)))


def main():
    parser = argparse.ArgumentParser(description="Station activity/balance by hour of day")
    parser.add_argument("trips", type=Path, help="Trip CSV (or zip holding one CSV)")
    parser.add_argument("--output", "-o", type=Path, default=STATION_HEATMAP_PDF,
                        help=f"Heatmap PDF (default: {STATION_HEATMAP_PDF})")
    args = parser.parse_args()

    from transit_report.charts import plot_station_heatmap
    from transit_report.citibike.trips import load_trips

    print(f"Loading trips from {args.trips}")
    trips = load_trips(args.trips)
    kept = filter_trips(trips)
    summary = filter_summary(trips, kept)
    print(f"  Trips: {summary['trips_in']:,} (kept {summary['trips_kept']:,}, dropped {summary['trips_dropped']:,})")

    colored = map_color_channels(aggregate_station_hours(kept))
    print(f"  Buckets: {len(colored):,} ({colored['station_name'].nunique():,} stations x 24 hours)")

    args.output.parent.mkdir(parents=True, exist_ok=True)
    plot_station_heatmap(colored, args.output)
    print(f"\n✓ Heatmap saved to {args.output}")


if __name__ == "__main__":
    main()
