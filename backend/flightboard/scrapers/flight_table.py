"""
Flight table extraction.

Turns the airport's flight-status page into FlightRecords. Cells are mapped
to fields by position, so every supported page shape is described by a
TableLayout in TABLE_LAYOUTS; when the upstream markup changes, the layout is
what gets edited.

Arrivals and departures are told apart structurally when the page has
separate tables for them (or marks rows with a class), and by keywords in the
status text when it only has one combined table.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag

from flightboard.errors import RowParseError
from flightboard.models.flight import FlightKind, FlightRecord

logger = logging.getLogger(__name__)

FIELD_NAMES = ("scheduled", "city", "flight_no", "airline", "status")
REQUIRED_FIELDS = ("scheduled", "flight_no")


@dataclass(frozen=True)
class TableLayout:
    """
    Where the flight rows live on a page and what each cell means.

    columns holds one field name per cell position; None skips a cell
    (gate, terminal, ...). Rows with fewer cells than columns are ignored.
    """
    columns: tuple[Optional[str], ...]
    combined_selector: Optional[str] = None
    arrival_selector: Optional[str] = None
    departure_selector: Optional[str] = None
    arrival_row_classes: tuple[str, ...] = ()
    departure_row_classes: tuple[str, ...] = ()

    def __post_init__(self):
        unknown = [c for c in self.columns if c is not None and c not in FIELD_NAMES]
        if unknown:
            raise ValueError(f"Unknown column fields: {unknown}")
        missing = [f for f in REQUIRED_FIELDS if f not in self.columns]
        if missing:
            raise ValueError(f"Layout is missing required columns: {missing}")
        if not (self.combined_selector or self.arrival_selector or self.departure_selector):
            raise ValueError("Layout needs at least one row selector")

    @property
    def min_cells(self) -> int:
        return len(self.columns)

    def structural_selectors(self) -> list[tuple[FlightKind, str]]:
        selectors = []
        if self.arrival_selector:
            selectors.append((FlightKind.ARRIVAL, self.arrival_selector))
        if self.departure_selector:
            selectors.append((FlightKind.DEPARTURE, self.departure_selector))
        return selectors


TABLE_LAYOUTS: dict[str, TableLayout] = {
    # Single table: Time, City, Flight No, Airline, Status
    "combined": TableLayout(
        columns=("scheduled", "city", "flight_no", "airline", "status"),
        combined_selector=".table-flight-info tbody tr",
        arrival_row_classes=("arrival", "arrivals"),
        departure_row_classes=("departure", "departures"),
    ),
    # One table per direction: Airline, Flight No, From/To, Scheduled, Status
    "split": TableLayout(
        columns=("airline", "flight_no", "city", "scheduled", "status"),
        arrival_selector="#arrival_table_id tbody tr",
        departure_selector="#departure_table_id tbody tr",
    ),
}


# Best-effort lexical classification for combined tables. Checked in order,
# first kind with a matching keyword wins.
STATUS_KEYWORDS: tuple[tuple[FlightKind, tuple[str, ...]], ...] = (
    (FlightKind.ARRIVAL, ("arrival", "arrived", "landed")),
    (FlightKind.DEPARTURE, ("departure", "departed", "scheduled", "boarding")),
)


def classify_status(status: str) -> Optional[FlightKind]:
    """Guess the movement kind from free-text status, None if nothing matches."""
    text = (status or "").lower()
    for kind, keywords in STATUS_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return kind
    return None


# A clock time may be followed by a meridiem or punctuation, never by more
# digits, a date separator or a word.
TIME_PATTERN = re.compile(
    r'\b(?P<hour>\d{1,2})[:.](?P<minute>\d{2})'
    r'(?:\s*(?P<meridiem>[AaPp])\.?\s*[Mm]\.?(?![A-Za-z]))?'
    r'(?![\d:.])(?!\s*[A-Za-z])'
)
DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M",
    "%d/%m/%Y %H:%M",
    "%d.%m.%Y %H:%M",
    "%d-%m-%Y %H:%M",
)


def _parse_full_datetime(text: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def resolve_scheduled_time(raw: str, now: datetime) -> datetime:
    """
    Turn a schedule cell into an aware datetime.

    A bare clock time is placed on today's date in now's timezone; if that is
    already in the past (to the minute) it belongs to tomorrow. Full
    date-times are kept, naive ones localised to now's timezone.
    """
    text = _clean_text(raw)
    if not text:
        raise RowParseError("empty schedule cell")

    full = _parse_full_datetime(text)
    if full is not None:
        return full if full.tzinfo else full.replace(tzinfo=now.tzinfo)

    match = TIME_PATTERN.search(text)
    if not match:
        raise RowParseError(f"unparseable time '{text}'")

    hour = int(match.group("hour"))
    minute = int(match.group("minute"))
    meridiem = match.group("meridiem")
    if meridiem:
        if not 1 <= hour <= 12:
            raise RowParseError(f"invalid 12-hour time '{text}'")
        hour = hour % 12 + (12 if meridiem.lower() == "p" else 0)
    if hour > 23 or minute > 59:
        raise RowParseError(f"time out of range '{text}'")

    current = now.replace(second=0, microsecond=0)
    scheduled = current.replace(hour=hour, minute=minute)
    if scheduled < current:
        scheduled += timedelta(days=1)
    return scheduled


def _clean_text(value: Optional[str]) -> str:
    return re.sub(r'\s+', ' ', value or '').strip()


def _row_marker_kind(row: Tag, layout: TableLayout) -> Optional[FlightKind]:
    classes = {c.lower() for c in (row.get("class") or [])}
    if classes.intersection(layout.arrival_row_classes):
        return FlightKind.ARRIVAL
    if classes.intersection(layout.departure_row_classes):
        return FlightKind.DEPARTURE
    return None


def parse_row(
    row: Tag,
    layout: TableLayout,
    now: datetime,
    kind: Optional[FlightKind] = None,
) -> FlightRecord:
    """Convert one <tr>; raises RowParseError when the row does not qualify."""
    cells = row.find_all("td")
    if len(cells) < layout.min_cells:
        raise RowParseError(f"expected {layout.min_cells} cells, got {len(cells)}")

    values = {name: "" for name in FIELD_NAMES}
    for name, cell in zip(layout.columns, cells):
        if name is not None:
            values[name] = _clean_text(cell.get_text(" ", strip=True))

    for name in REQUIRED_FIELDS:
        if not values[name]:
            raise RowParseError(f"missing {name}")

    if kind is None:
        kind = _row_marker_kind(row, layout) or classify_status(values["status"])
    if kind is None:
        raise RowParseError(f"cannot classify status '{values['status']}'")

    return FlightRecord(
        kind=kind,
        scheduled_at=resolve_scheduled_time(values["scheduled"], now),
        flight_no=values["flight_no"],
        city=values["city"],
        airline=values["airline"],
        status=values["status"],
    )


def _rows_to_records(rows, layout, now, kind=None) -> list[FlightRecord]:
    records = []
    for row in rows:
        try:
            records.append(parse_row(row, layout, now, kind))
        except RowParseError as e:
            logger.debug(f"Skipping flight row: {e}")
    return records


def extract_flights(
    document: Union[BeautifulSoup, str],
    layout: TableLayout,
    now: datetime,
) -> list[FlightRecord]:
    """
    Extract every qualifying flight row from a page.

    Returns an empty list when the expected tables are absent; rows that do
    not fit the layout are skipped, never raised.
    """
    soup = document if isinstance(document, BeautifulSoup) else BeautifulSoup(document or "", "html.parser")

    structural = [(kind, soup.select(selector)) for kind, selector in layout.structural_selectors()]
    if any(rows for _, rows in structural):
        records = []
        for kind, rows in structural:
            records.extend(_rows_to_records(rows, layout, now, kind))
        logger.debug(f"Structural extraction: {len(records)} flights")
        return records

    if not layout.combined_selector:
        return []

    rows = soup.select(layout.combined_selector)
    records = _rows_to_records(rows, layout, now)
    logger.debug(f"Combined-table extraction: {len(records)} of {len(rows)} rows kept")
    return records


__all__ = [
    "TableLayout",
    "TABLE_LAYOUTS",
    "STATUS_KEYWORDS",
    "classify_status",
    "resolve_scheduled_time",
    "parse_row",
    "extract_flights",
]
