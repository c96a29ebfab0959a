"""
Import sanitizer.

``sanitize`` is the only way externally supplied data becomes a ``TimelineDocument``.
It never raises: every field is recovered on its own with a fallback, so the result
always satisfies the document invariants.
"""
import math
from collections.abc import Mapping
from typing import Any, List, Set

from .grid import clamp, clamp_half, round_half_up, to_number
from .logs import get_logger
from .models import (
    BAR_HEIGHT_MAX, BAR_HEIGHT_MIN, DEFAULT_MANUAL_BAR_HEIGHT, DEFAULT_MANUAL_ROW_HEIGHT,
    DEFAULT_WEEKS, MAX_WEEKS, MIN_WEEKS, ROW_HEIGHT_MAX, ROW_HEIGHT_MIN,
    BarItem, DiscoveryItem, MilestoneItem, PhaseRow, SizingMode, TaskRow, TimelineDocument,
    clean_label, new_id, starter_document, starter_rows,
)

log = get_logger("sanitize")

_SIZING_MODES = {mode.value: mode for mode in SizingMode}
_RANGE_TYPES = {"bar": BarItem, "discovery": DiscoveryItem}

def _field(raw: Any, key: str) -> Any:
    return raw.get(key) if isinstance(raw, Mapping) else None

def _is_present(value: Any) -> bool:
    """False only for null, false, zero, NaN and the empty string.

    Empty mappings and lists count as present, so an empty row or item is repaired
    rather than dropped.
    """
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (int, float)):
        return not (value == 0 or math.isnan(value))
    return True

def _or_default(value: Any, default: float) -> float:
    # Missing, zero and empty values all mean "use the default".
    if not _is_present(value):
        return float(default)
    return to_number(value, default)

def _sizing_mode(value: Any) -> SizingMode:
    if isinstance(value, str) and value in _SIZING_MODES:
        return _SIZING_MODES[value]
    return SizingMode.AUTO

def _unique_id(value: Any, taken: Set[str]) -> str:
    if isinstance(value, str) and value and value not in taken:
        identifier = value
    else:
        identifier = new_id()
        if value:
            log.debug(f"Replaced invalid or duplicate id {value!r} with {identifier}")
    taken.add(identifier)
    return identifier

def _sanitize_item(raw: Any, weeks_count: int, taken: Set[str]):
    item_id = _unique_id(_field(raw, "id"), taken)
    item_type = _field(raw, "type")

    if item_type == "milestone":
        week = clamp(_or_default(_field(raw, "week"), MIN_WEEKS), MIN_WEEKS, weeks_count)
        return MilestoneItem(id=item_id, week=round_half_up(week))

    s = clamp_half(_or_default(_field(raw, "start"), MIN_WEEKS), MIN_WEEKS, weeks_count)
    e = clamp_half(_or_default(_field(raw, "end"), s), MIN_WEEKS, weeks_count)
    item_class = _RANGE_TYPES.get(item_type, BarItem) if isinstance(item_type, str) else BarItem
    return item_class(id=item_id, start=min(s, e), end=max(s, e))

def _sanitize_row(raw: Any, weeks_count: int, taken: Set[str]):
    row_id = _unique_id(_field(raw, "id"), taken)
    label = clean_label(_field(raw, "label"))

    if _field(raw, "kind") == "phase":
        return PhaseRow(id=row_id, label=label)

    items_raw = _field(raw, "items")
    if not isinstance(items_raw, list):
        items_raw = []
    item_ids: Set[str] = set()
    items = [_sanitize_item(it, weeks_count, item_ids) for it in items_raw if _is_present(it)]
    return TaskRow(id=row_id, label=label, items=items)

def sanitize(raw: Any) -> TimelineDocument:
    """
    Rebuild an arbitrary value into a document that satisfies every invariant.

    Args:
        raw: Anything: a decoded JSON object, a ``TimelineDocument``, or garbage.

    Returns:
        A new ``TimelineDocument``. Non-mapping input yields the starter document.
    """
    if isinstance(raw, TimelineDocument):
        raw = raw.to_dict()
    if not isinstance(raw, Mapping):
        log.debug("Import payload is not an object, using the starter document")
        return starter_document()

    weeks_count = int(clamp(round_half_up(_or_default(raw.get("weeksCount"), DEFAULT_WEEKS)), MIN_WEEKS, MAX_WEEKS))

    manual_row_height = clamp(
        _or_default(raw.get("manualRowHeight"), DEFAULT_MANUAL_ROW_HEIGHT), ROW_HEIGHT_MIN, ROW_HEIGHT_MAX
    )
    bar_raw = raw.get("manualBarHeight")
    manual_bar_height = clamp(
        DEFAULT_MANUAL_BAR_HEIGHT if bar_raw is None else to_number(bar_raw, DEFAULT_MANUAL_BAR_HEIGHT),
        BAR_HEIGHT_MIN, BAR_HEIGHT_MAX
    )

    rows_raw = raw.get("rows")
    rows: List[Any]
    if isinstance(rows_raw, list):
        row_ids: Set[str] = set()
        rows = [_sanitize_row(r, weeks_count, row_ids) for r in rows_raw if _is_present(r)]
    else:
        rows = []
    if not rows:
        log.debug("Import payload has no usable rows, using the starter rows")
        rows = _fit_rows(starter_rows(), weeks_count)

    return TimelineDocument(
        weeks_count=weeks_count,
        rows=rows,
        row_height_mode=_sizing_mode(raw.get("rowHeightMode")),
        manual_row_height=round_half_up(manual_row_height),
        bar_height_mode=_sizing_mode(raw.get("barHeightMode")),
        manual_bar_height=round_half_up(manual_bar_height),
    )

def _fit_rows(rows: List[Any], weeks_count: int) -> List[Any]:
    # Starter items assume 20 weeks; a smaller imported week count still bounds them.
    for row in rows:
        if isinstance(row, TaskRow):
            for item in row.items:
                item.clamp_to(weeks_count)
    return rows
