import pandas as pd
import pytest

from transit_report.citibike.stations import (
    AGGREGATE_COLUMNS,
    HOURS,
    aggregate_station_hours,
    filter_summary,
    filter_trips,
    map_color_channels,
    station_activity,
    trip_events,
)
from transit_report.config import INFLOW_HUE, OUTFLOW_HUE

from tests.conftest import make_trips


def bucket(agg, station, hour):
    row = agg[(agg["station_name"] == station) & (agg["hour"] == hour)]
    assert len(row) == 1
    return row.iloc[0]


class TestFilterTrips:

    def test_keeps_trips_ending_at_start_stations(self, trips):
        kept = filter_trips(trips)
        pairs = list(zip(kept["start_station_name"], kept["end_station_name"]))
        assert pairs == [("A", "B"), ("B", "A"), ("A", "C"), ("C", "A")]

    def test_missing_start_station_kept_when_end_known(self):
        df = make_trips([
            ("A", "A", "2021-09-01 08:00", "2021-09-01 08:10"),
            (None, "A", "2021-09-01 09:00", "2021-09-01 09:10"),
        ])
        assert len(filter_trips(df)) == 2

    def test_idempotent(self, trips):
        once = filter_trips(trips)
        twice = filter_trips(once)
        pd.testing.assert_frame_equal(once, twice)

    def test_cascading_removal(self):
        # S only starts a trip that gets dropped, so A->S loses its end station
        df = make_trips([
            ("S", "X", "2021-09-01 08:00", "2021-09-01 08:10"),
            ("A", "S", "2021-09-01 09:00", "2021-09-01 09:10"),
            ("A", "A", "2021-09-01 10:00", "2021-09-01 10:10"),
        ])
        single = filter_trips(df, until_stable=False)
        assert list(single["end_station_name"]) == ["S", "A"]

        stable = filter_trips(df)
        assert list(stable["end_station_name"]) == ["A"]
        pd.testing.assert_frame_equal(filter_trips(stable), stable)

    def test_does_not_modify_input(self, trips):
        before = trips.copy()
        filter_trips(trips)
        pd.testing.assert_frame_equal(trips, before)

    def test_summary(self, trips):
        summary = filter_summary(trips, filter_trips(trips))
        assert summary["trips_in"] == 7
        assert summary["trips_kept"] == 4
        assert summary["trips_dropped"] == 3
        assert summary["missing_end_station"] == 2
        assert summary["stations_in"] == 4
        assert summary["stations_kept"] == 3


class TestTripEvents:

    def test_two_events_per_trip(self, trips):
        kept = filter_trips(trips)
        events = trip_events(kept)
        assert len(events) == 2 * len(kept)
        assert (events["event_type"] == "departure").sum() == len(kept)

    def test_hours_zero_padded(self, trips):
        events = trip_events(filter_trips(trips))
        assert set(events["hour"]) == {"07", "08", "09", "17"}

    def test_departure_uses_start_time_arrival_uses_stop_time(self):
        df = make_trips([("A", "B", "2021-09-01 08:55", "2021-09-01 09:05")])
        events = trip_events(df).set_index("event_type")
        assert events.loc["departure", "station_name"] == "A"
        assert events.loc["departure", "hour"] == "08"
        assert events.loc["arrival", "station_name"] == "B"
        assert events.loc["arrival", "hour"] == "09"

    def test_missing_timestamp_or_station_skipped(self):
        df = make_trips([("A", None, "2021-09-01 08:55", None)])
        events = trip_events(df)
        assert list(events["event_type"]) == ["departure"]


class TestAggregateStationHours:

    def test_two_trip_example(self):
        df = make_trips([
            ("A", "B", "2021-09-01 08:15", "2021-09-01 08:30"),
            ("B", "A", "2021-09-01 08:45", "2021-09-01 09:10"),
        ])
        agg = aggregate_station_hours(filter_trips(df))

        a8 = bucket(agg, "A", "08")
        assert a8["activity"] == 1
        assert a8["balance"] == 1

        b8 = bucket(agg, "B", "08")
        assert b8["arrivals"] == 1
        assert b8["departures"] == 1
        assert b8["balance"] == 0

        assert bucket(agg, "A", "09")["balance"] == -1

    def test_full_grid_zero_filled(self, trips):
        agg = aggregate_station_hours(filter_trips(trips))
        assert list(agg.columns) == AGGREGATE_COLUMNS
        assert len(agg) == 3 * 24
        for station, group in agg.groupby("station_name"):
            assert list(group["hour"]) == HOURS
        quiet = bucket(agg, "A", "03")
        assert quiet["activity"] == 0
        assert quiet["balance"] == 0

    def test_unique_keys_sorted(self, trips):
        agg = aggregate_station_hours(filter_trips(trips))
        assert not agg.duplicated(subset=["station_name", "hour"]).any()
        keys = list(zip(agg["station_name"], agg["hour"]))
        assert keys == sorted(keys)

    def test_bucket_values(self, trips):
        agg = aggregate_station_hours(filter_trips(trips))
        assert bucket(agg, "A", "08")["activity"] == 2   # departs 08:15, arrives 08:20
        assert bucket(agg, "A", "08")["balance"] == 0
        assert bucket(agg, "A", "17")["balance"] == 1
        assert bucket(agg, "C", "17")["balance"] == -1
        assert bucket(agg, "C", "07")["activity"] == 1

    def test_balance_is_departures_minus_arrivals(self, trips):
        kept = filter_trips(trips)
        agg = aggregate_station_hours(kept)
        assert (agg["balance"] == agg["departures"] - agg["arrivals"]).all()
        assert (agg["activity"] == agg["departures"] + agg["arrivals"]).all()

        per_station = agg.groupby("station_name")["balance"].sum()
        for station, total in per_station.items():
            departures = (kept["start_station_name"] == station).sum()
            arrivals = (kept["end_station_name"] == station).sum()
            assert total == departures - arrivals

    def test_dtypes(self, trips):
        agg = aggregate_station_hours(filter_trips(trips))
        assert pd.api.types.is_float_dtype(agg["activity"])
        assert pd.api.types.is_integer_dtype(agg["balance"])

    def test_empty_input(self):
        agg = aggregate_station_hours(make_trips([]))
        assert agg.empty
        assert list(agg.columns) == AGGREGATE_COLUMNS


class TestMapColorChannels:

    def test_channels(self, trips):
        colored = map_color_channels(aggregate_station_hours(filter_trips(trips)))

        assert colored["saturation"].max() == pytest.approx(100)
        assert colored["luminance"].max() == pytest.approx(100)
        assert colored["saturation"].min() == pytest.approx(0)
        assert colored["luminance"].min() == pytest.approx(0)

        busiest = bucket(colored, "A", "08")
        assert busiest["luminance"] == pytest.approx(100)
        assert busiest["saturation"] == pytest.approx(0)

        half = bucket(colored, "A", "09")
        assert half["luminance"] == pytest.approx(50)
        assert half["saturation"] == pytest.approx(100)

    def test_hue_boundary(self, trips):
        colored = map_color_channels(aggregate_station_hours(filter_trips(trips)))
        assert bucket(colored, "A", "09")["hue"] == OUTFLOW_HUE   # balance -1
        assert bucket(colored, "A", "08")["hue"] == INFLOW_HUE    # balance 0
        assert bucket(colored, "A", "17")["hue"] == INFLOW_HUE    # balance 1

    def test_idle_bucket_is_black(self, trips):
        colored = map_color_channels(aggregate_station_hours(filter_trips(trips)))
        assert bucket(colored, "A", "03")["color"] == "#000000"
        assert colored["color"].str.match(r"^#[0-9a-f]{6}$").all()

    def test_all_balanced_has_no_nan(self):
        df = make_trips([("A", "A", "2021-09-01 08:15", "2021-09-01 08:30")])
        colored = map_color_channels(aggregate_station_hours(df))
        assert not colored[["hue", "saturation", "luminance"]].isna().any().any()
        assert (colored["saturation"] == 0).all()

    def test_custom_hues(self, trips):
        agg = aggregate_station_hours(filter_trips(trips))
        colored = map_color_channels(agg, outflow_hue=120, inflow_hue=300)
        assert set(colored["hue"]) == {120, 300}

    def test_station_activity(self, trips):
        colored = station_activity(trips)
        assert len(colored) == 72
        assert {"hue", "saturation", "luminance", "color"} <= set(colored.columns)
