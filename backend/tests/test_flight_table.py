"""
Tests for flight table extraction: layouts, status classification and
schedule time resolution.
"""
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from bs4 import BeautifulSoup

from flightboard.errors import RowParseError
from flightboard.models.flight import FlightKind
from flightboard.scrapers.flight_table import (
    STATUS_KEYWORDS,
    TABLE_LAYOUTS,
    TableLayout,
    classify_status,
    extract_flights,
    resolve_scheduled_time,
)

TZ = ZoneInfo("Asia/Baghdad")
NOW = datetime(2026, 10, 16, 12, 0, tzinfo=TZ)


COMBINED_PAGE = """
<html><body>
<table class="table-flight-info">
  <thead><tr><th>Time</th><th>City</th><th>Flight</th><th>Airline</th><th>Status</th></tr></thead>
  <tbody>
    <tr><td>14:30</td><td>Istanbul</td><td>TK316</td><td>Turkish Airlines</td><td>Boarding</td></tr>
    <tr><td>09:15</td><td>Baghdad</td><td>IA220</td><td>Iraqi Airways</td><td>Landed</td></tr>
    <tr><td>13:05</td><td>Doha</td><td>QR441</td><td>Qatar Airways</td><td>Arrived</td></tr>
    <tr><td>16:00</td><td>Dubai</td><td>FZ206</td><td>FlyDubai</td><td>Scheduled</td></tr>
    <tr class="arrival"><td>18:20</td><td>Amman</td><td>RJ810</td><td>Royal Jordanian</td><td>Delayed</td></tr>
    <tr><td>19:00</td><td>Vienna</td><td>OS851</td><td>Austrian</td><td>Delayed</td></tr>
    <tr><td>20:00</td><td>Cairo</td><td>MS627</td><td>EgyptAir</td></tr>
    <tr><td>soon</td><td>Beirut</td><td>ME325</td><td>MEA</td><td>Scheduled</td></tr>
    <tr><td>21:00</td><td>Tehran</td><td></td><td>Iran Air</td><td>Scheduled</td></tr>
  </tbody>
</table>
</body></html>
"""

SPLIT_PAGE = """
<html><body>
<table id="arrival_table_id"><tbody>
  <tr><td>Iraqi Airways</td><td>IA220</td><td>Baghdad</td><td>10:00</td><td>Delayed</td></tr>
  <tr><td>Qatar Airways</td><td>QR441</td><td>Doha</td><td>11:30</td><td>On time</td></tr>
</tbody></table>
<table id="departure_table_id"><tbody>
  <tr><td>Turkish Airlines</td><td>TK316</td><td>Istanbul</td><td>14:15</td><td>Landed</td></tr>
  <tr><td>FlyDubai</td><td>FZ206</td><td>Dubai</td></tr>
</tbody></table>
</body></html>
"""


def _by_flight(records):
    return {r.flight_no: r for r in records}


class TestCombinedLayout:

    def test_extracts_classifiable_rows(self):
        records = extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW)
        flights = _by_flight(records)
        assert set(flights) == {"TK316", "IA220", "QR441", "FZ206", "RJ810"}

    def test_maps_columns_by_position(self):
        records = extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW)
        tk = _by_flight(records)["TK316"]
        assert tk.city == "Istanbul"
        assert tk.airline == "Turkish Airlines"
        assert tk.status == "Boarding"
        assert tk.kind is FlightKind.DEPARTURE

    def test_status_keywords_classify_rows(self):
        flights = _by_flight(extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW))
        assert flights["IA220"].kind is FlightKind.ARRIVAL
        assert flights["QR441"].kind is FlightKind.ARRIVAL
        assert flights["FZ206"].kind is FlightKind.DEPARTURE

    def test_row_class_marker_beats_keywords(self):
        flights = _by_flight(extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW))
        assert flights["RJ810"].kind is FlightKind.ARRIVAL

    def test_unclassifiable_short_and_broken_rows_are_skipped(self):
        flights = _by_flight(extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW))
        assert "OS851" not in flights  # "Delayed" matches no keyword
        assert "MS627" not in flights  # four cells
        assert "ME325" not in flights  # no time
        assert all(r.flight_no for r in flights.values())

    def test_accepts_parsed_document(self):
        soup = BeautifulSoup(COMBINED_PAGE, "html.parser")
        assert len(extract_flights(soup, TABLE_LAYOUTS["combined"], NOW)) == 5

    def test_scheduled_times_are_timezone_aware(self):
        records = extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW)
        assert all(r.scheduled_at.tzinfo is not None for r in records)


class TestSplitLayout:

    def test_kind_comes_from_table(self):
        flights = _by_flight(extract_flights(SPLIT_PAGE, TABLE_LAYOUTS["split"], NOW))
        assert flights["IA220"].kind is FlightKind.ARRIVAL
        assert flights["QR441"].kind is FlightKind.ARRIVAL
        # Status text says Landed, but the row sits in the departures table
        assert flights["TK316"].kind is FlightKind.DEPARTURE

    def test_split_column_order(self):
        qr = _by_flight(extract_flights(SPLIT_PAGE, TABLE_LAYOUTS["split"], NOW))["QR441"]
        assert qr.airline == "Qatar Airways"
        assert qr.city == "Doha"
        assert qr.status == "On time"
        assert (qr.scheduled_at.hour, qr.scheduled_at.minute) == (11, 30)

    def test_short_rows_skipped(self):
        flights = _by_flight(extract_flights(SPLIT_PAGE, TABLE_LAYOUTS["split"], NOW))
        assert "FZ206" not in flights
        assert len(flights) == 3


class TestShapeMismatch:

    def test_page_without_tables_yields_empty_list(self):
        html = "<html><body><p>Maintenance</p></body></html>"
        assert extract_flights(html, TABLE_LAYOUTS["combined"], NOW) == []
        assert extract_flights(html, TABLE_LAYOUTS["split"], NOW) == []

    def test_empty_document(self):
        assert extract_flights("", TABLE_LAYOUTS["combined"], NOW) == []

    def test_table_with_no_rows(self):
        html = '<table class="table-flight-info"><tbody></tbody></table>'
        assert extract_flights(html, TABLE_LAYOUTS["combined"], NOW) == []


class TestStructuralPreference:

    LAYOUT = TableLayout(
        columns=("scheduled", "city", "flight_no", "airline", "status"),
        combined_selector="table.all tbody tr",
        arrival_selector="table.arr tbody tr",
        departure_selector="table.dep tbody tr",
    )

    def test_structural_tables_win_when_present(self):
        html = """
        <table class="arr"><tbody><tr><td>13:00</td><td>Doha</td><td>QR441</td><td>Qatar</td><td>Scheduled</td></tr></tbody></table>
        <table class="all"><tbody><tr><td>15:00</td><td>Rome</td><td>AZ1</td><td>ITA</td><td>Landed</td></tr></tbody></table>
        """
        records = extract_flights(html, self.LAYOUT, NOW)
        assert [r.flight_no for r in records] == ["QR441"]
        assert records[0].kind is FlightKind.ARRIVAL

    def test_falls_back_to_combined_table(self):
        html = """
        <table class="all"><tbody><tr><td>15:00</td><td>Rome</td><td>AZ1</td><td>ITA</td><td>Landed</td></tr></tbody></table>
        """
        records = extract_flights(html, self.LAYOUT, NOW)
        assert [r.flight_no for r in records] == ["AZ1"]
        assert records[0].kind is FlightKind.ARRIVAL


class TestClassifyStatus:

    @pytest.mark.parametrize("status", ["Landed", "Arrived 09:12", "ARRIVAL", "landed early"])
    def test_arrival_keywords(self, status):
        assert classify_status(status) is FlightKind.ARRIVAL

    @pytest.mark.parametrize("status", ["Scheduled", "Boarding", "Departed", "Departure gate 4"])
    def test_departure_keywords(self, status):
        assert classify_status(status) is FlightKind.DEPARTURE

    @pytest.mark.parametrize("status", ["Delayed", "Cancelled", "", None])
    def test_unknown_status(self, status):
        assert classify_status(status) is None

    def test_arrival_checked_first(self):
        assert STATUS_KEYWORDS[0][0] is FlightKind.ARRIVAL
        assert classify_status("Scheduled arrival") is FlightKind.ARRIVAL


class TestResolveScheduledTime:

    def test_earlier_time_rolls_to_tomorrow(self):
        result = resolve_scheduled_time("09:15", NOW)
        assert result == datetime(2026, 10, 17, 9, 15, tzinfo=TZ)

    def test_later_time_is_today(self):
        result = resolve_scheduled_time("18:40", NOW)
        assert result == datetime(2026, 10, 16, 18, 40, tzinfo=TZ)

    def test_current_minute_stays_today(self):
        now = datetime(2026, 10, 16, 12, 0, 45, tzinfo=TZ)
        assert resolve_scheduled_time("12:00", now).date() == now.date()

    def test_twelve_hour_clock(self):
        assert resolve_scheduled_time("2:05 PM", NOW) == datetime(2026, 10, 16, 14, 5, tzinfo=TZ)
        assert resolve_scheduled_time("12:30 a.m.", NOW) == datetime(2026, 10, 17, 0, 30, tzinfo=TZ)

    def test_time_inside_noise(self):
        assert resolve_scheduled_time(" 16:45\n(est.) ", NOW).hour == 16

    def test_full_datetime_is_kept(self):
        result = resolve_scheduled_time("2026-10-15 08:00", NOW)
        assert result == datetime(2026, 10, 15, 8, 0, tzinfo=TZ)

    def test_aware_iso_datetime_keeps_offset(self):
        result = resolve_scheduled_time("2026-10-18T08:00:00+00:00", NOW)
        assert result.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize(
        "raw",
        ["", "TBA", "25:10", "13:00 PM", "12:75", "16.10.2026", "12:00 Amman", "9:30 pmx"],
    )
    def test_invalid_times_raise(self, raw):
        with pytest.raises(RowParseError):
            resolve_scheduled_time(raw, NOW)


class TestTableLayoutValidation:

    def test_unknown_column_rejected(self):
        with pytest.raises(ValueError):
            TableLayout(columns=("scheduled", "flight_no", "gate"), combined_selector="tr")

    def test_required_columns(self):
        with pytest.raises(ValueError):
            TableLayout(columns=("city", "airline"), combined_selector="tr")

    def test_selector_required(self):
        with pytest.raises(ValueError):
            TableLayout(columns=("scheduled", "flight_no"))

    def test_skipped_columns(self):
        layout = TableLayout(
            columns=("scheduled", None, "flight_no", "city", "airline", "status"),
            combined_selector="tbody tr",
        )
        html = "<table><tbody><tr><td>15:00</td><td>G4</td><td>AZ1</td><td>Rome</td><td>ITA</td><td>Landed</td></tr></tbody></table>"
        record = extract_flights(html, layout, NOW)[0]
        assert record.city == "Rome"
        assert layout.min_cells == 6


def test_arrivals_and_departures_partition_all_flights():
    records = extract_flights(COMBINED_PAGE, TABLE_LAYOUTS["combined"], NOW)
    arrivals = [r for r in records if r.kind is FlightKind.ARRIVAL]
    departures = [r for r in records if r.kind is FlightKind.DEPARTURE]
    assert len(arrivals) + len(departures) == len(records)
    assert not set(r.flight_no for r in arrivals) & set(r.flight_no for r in departures)
