"""
Pixel sizing derived from the document, for the renderer.

Everything here is a pure function of its arguments; any numeric input maps to a
defined output.
"""
from pydantic import BaseModel, ConfigDict

from .grid import clamp, round_half_up
from .models import BAR_HEIGHT_MIN, SizingMode, TimelineDocument

LEFT_COLUMN_PX = 280

class Sizing(BaseModel):
    """Pixel constants the renderer lays the timeline out with."""

    model_config = ConfigDict(frozen=True)

    row_height_px: int
    bar_height_px: int
    header_height_px: int
    label_font_px: int
    label_pad_y_px: int
    milestone_font_px: int
    phase_height_px: int
    phase_font_px: int

class ColumnMetrics(BaseModel):
    """Width of the week columns for a given container width."""

    model_config = ConfigDict(frozen=True)

    available_px: float
    week_col_px: float
    half_col_px: float

def auto_row_height(row_count: int) -> int:
    """Row height that keeps the whole timeline readable as rows are added."""
    if row_count > 40:
        return 24
    if row_count > 32:
        return 28
    if row_count > 24:
        return 32
    if row_count > 18:
        return 38
    if row_count > 12:
        return 46
    return 54

def _scaled(row_height_px: int, ratio: float, lo: int, hi: int) -> int:
    return int(clamp(round_half_up(row_height_px * ratio), lo, hi))

def derive_sizing(row_height_px: int) -> Sizing:
    return Sizing(
        row_height_px=row_height_px,
        bar_height_px=_scaled(row_height_px, 0.42, 10, 22),
        header_height_px=_scaled(row_height_px, 0.85, 28, 44),
        label_font_px=_scaled(row_height_px, 0.34, 10, 16),
        label_pad_y_px=_scaled(row_height_px, 0.18, 5, 12),
        milestone_font_px=_scaled(row_height_px, 0.46, 14, 22),
        phase_height_px=_scaled(row_height_px, 0.75, 28, 48),
        phase_font_px=_scaled(row_height_px, 0.36, 12, 18),
    )

def row_height_for(document: TimelineDocument) -> int:
    if document.row_height_mode is SizingMode.MANUAL:
        return document.manual_row_height
    return auto_row_height(len(document.rows))

def max_bar_height(row_height_px: int) -> int:
    """Tallest bar that still fits inside a row."""
    return max(BAR_HEIGHT_MIN, round_half_up(row_height_px * 0.9))

def effective_bar_height(document: TimelineDocument, sizing: Sizing) -> int:
    if document.bar_height_mode is SizingMode.MANUAL:
        return int(clamp(document.manual_bar_height, BAR_HEIGHT_MIN, max_bar_height(sizing.row_height_px)))
    return sizing.bar_height_px

def resolve_sizing(document: TimelineDocument) -> Sizing:
    """Sizing for a document, with its row and bar height modes applied."""
    sizing = derive_sizing(row_height_for(document))
    return sizing.model_copy(update={"bar_height_px": effective_bar_height(document, sizing)})

def column_metrics(container_width: float, weeks_count: int, left_col_px: int = LEFT_COLUMN_PX) -> ColumnMetrics:
    available_px = max(0.0, float(container_width) - left_col_px)
    week_col_px = available_px / weeks_count if weeks_count > 0 else 0.0
    # A zero-width container must not turn pointer deltas into divisions by zero.
    half_col_px = week_col_px / 2 or 1.0
    return ColumnMetrics(available_px=available_px, week_col_px=week_col_px, half_col_px=half_col_px)
