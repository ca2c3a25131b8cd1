"""
Tests for reading the static sightings dataset and the seeding script's
field splitter, plus the summary stats shown above the table.
"""
from datetime import date

import pytest

from tests.factories import HEADER, TODAY
from wraithwatchers.csv_parser import (
    calculate_stats,
    parse_float,
    parse_sighting_date,
    parse_sightings_data,
    parse_upload_csv,
    split_upload_line,
    time_ago,
)


class TestParseSightingsData:
    def test_single_row_example(self):
        text = HEADER + '\n2024-01-01,40.0,-74.0,Newark,New Jersey,"Lights.",Night,Orbs,\n'
        result = parse_sightings_data(text)
        assert len(result) == 1
        s = result[0]
        assert s.id == 1
        assert s.date == "2024-01-01"
        assert s.type == "Orbs"
        assert s.lat == 40.0
        assert s.lng == -74.0
        assert s.location == "Newark, New Jersey"
        assert s.state == "New Jersey"
        assert s.image is None

    def test_drops_rows_without_coordinates(self, sightings):
        assert all(s.lat != 0 and s.lng != 0 for s in sightings)
        assert "Nowhere, Nevada" not in [s.location for s in sightings]

    def test_ids_are_raw_row_positions(self, sightings):
        assert [s.id for s in sightings] == [1, 2, 3, 4, 5, 7]

    def test_drops_rows_without_date_or_type(self):
        text = "\n".join([
            HEADER,
            ',40.0,-74.0,Newark,New Jersey,"No date.",Night,Orbs,',
            '2024-01-01,40.0,-74.0,Newark,New Jersey,"No type.",Night,,',
            '2024-01-02,40.0,-74.0,Newark,New Jersey,"Fine.",Night,Orbs,',
        ])
        result = parse_sightings_data(text)
        assert [s.id for s in result] == [3]

    def test_unparseable_coordinates_are_dropped(self):
        text = HEADER + '\n2024-01-01,north,-74.0,Newark,New Jersey,"x",Night,Orbs,\n'
        assert parse_sightings_data(text) == []

    def test_coordinates_with_trailing_text_use_leading_number(self):
        text = HEADER + '\n2024-01-01,40.1abc,-74.0 W,Newark,New Jersey,"x",Night,Orbs,\n'
        result = parse_sightings_data(text)
        assert [(s.lat, s.lng) for s in result] == [(40.1, -74.0)]

    def test_image_link_kept(self, sightings):
        by_id = {s.id: s for s in sightings}
        assert by_id[3].image == "https://img.example/g.jpg"

    def test_quoted_notes_with_commas(self):
        text = HEADER + '\n2024-01-01,40.0,-74.0,Newark,New Jersey,"Cold, then warm, then cold.",Night,Orbs,\n'
        assert parse_sightings_data(text)[0].notes == "Cold, then warm, then cold."

    def test_empty_input(self):
        assert parse_sightings_data(HEADER + "\n") == []


class TestParseFloat:
    @pytest.mark.parametrize("value, expected", [
        ("40.1", 40.1),
        ("  -74.5 ", -74.5),
        ("40.1abc", 40.1),
        (".5", 0.5),
        ("1e3x", 1000.0),
    ])
    def test_leading_number(self, value, expected):
        assert parse_float(value) == expected

    @pytest.mark.parametrize("value", [None, "", "north", "abc40", "-", "1e999"])
    def test_no_number(self, value):
        assert parse_float(value) is None


class TestParseSightingDate:
    @pytest.mark.parametrize("value,expected", [
        ("2024-01-01", date(2024, 1, 1)),
        ("1/15/2024", date(2024, 1, 15)),
        ("  2023-12-24 ", date(2023, 12, 24)),
    ])
    def test_readable(self, value, expected):
        assert parse_sighting_date(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", None, "unknown"])
    def test_unreadable(self, value):
        assert parse_sighting_date(value) is None


class TestUploadParser:
    def test_split_respects_quotes(self):
        assert split_upload_line('a,"b, c",d') == ["a", "b, c", "d"]

    def test_split_trims_values(self):
        assert split_upload_line(' a , b ') == ["a", "b"]

    def test_rows_keyed_by_header(self, sample_csv):
        rows = parse_upload_csv(sample_csv)
        assert len(rows) == 7
        assert rows[0]["Nearest Approximate City"] == "Salem"
        assert rows[0]["Notes about the sighting"] == "Grey figure by the common."

    def test_ragged_rows_skipped(self):
        text = "a,b,c\n1,2,3\n1,2\n\n4,5,6\n"
        assert parse_upload_csv(text) == [
            {"a": "1", "b": "2", "c": "3"},
            {"a": "4", "b": "5", "c": "6"},
        ]


class TestTimeAgo:
    @pytest.mark.parametrize("days,expected", [
        (0, "Today"),
        (1, "1 Day Ago"),
        (6, "6 Days Ago"),
        (14, "2 Weeks Ago"),
        (95, "3 Months Ago"),
        (800, "2 Years Ago"),
    ])
    def test_buckets(self, days, expected):
        assert time_ago(date.fromordinal(TODAY.toordinal() - days), TODAY) == expected


class TestCalculateStats:
    def test_summary(self, sightings):
        stats = calculate_stats(sightings, today=TODAY)
        assert stats["total_sightings"] == 6
        assert stats["most_recent"] == "5 Days Ago"
        assert stats["most_ghostly_city"] == "Salem, Massachusetts"

    def test_empty(self):
        stats = calculate_stats([], today=TODAY)
        assert stats == {
            "total_sightings": 0,
            "most_recent": "No recent sightings",
            "most_ghostly_city": "Unknown",
        }

    def test_tie_goes_to_first_seen_city(self, sightings):
        # One sighting per city: the first record's city wins
        unique = [s for s in sightings if s.id != 5]
        stats = calculate_stats(unique, today=TODAY)
        assert stats["most_ghostly_city"] == "Salem, Massachusetts"
