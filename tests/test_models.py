"""Unit tests for Pydantic models."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from timelinegen.models import (
    BarItem, DiscoveryItem, ExportEnvelope, ItemType, MilestoneItem, PhaseRow,
    RowKind, SizingMode, TaskRow, TimelineDocument, UNTITLED, starter_document,
)


class TestItems:
    """Test item models."""

    def test_whole_weeks_serialize_as_integers(self):
        """Test whole weeks are written as integers."""
        data = BarItem(id="b1", start=2, end=5).to_dict()
        assert data == {"id": "b1", "start": 2, "end": 5, "type": "bar"}
        assert isinstance(data["start"], int)

    def test_half_weeks_serialize_as_floats(self):
        """Test half weeks keep their fraction."""
        data = DiscoveryItem(start=1.5, end=3).to_dict()
        assert data["start"] == 1.5
        assert data["type"] == "discovery"

    def test_invalid_ranges(self):
        """Test that bad geometry is rejected."""
        with pytest.raises(ValidationError, match="end must not be before start"):
            BarItem(start=5, end=2)

        with pytest.raises(ValidationError):
            BarItem(start=2.25, end=3)

        with pytest.raises(ValidationError):
            BarItem(start=0, end=3)

    def test_milestone(self):
        """Test milestones get an id and need a positive week."""
        milestone = MilestoneItem(week=4)
        assert milestone.type == "milestone"
        assert milestone.id

        with pytest.raises(ValidationError):
            MilestoneItem(week=0)

    def test_clamp_to_keeps_order(self):
        """Test clamping to fewer weeks keeps start before end."""
        bar = BarItem(start=12, end=18)
        bar.clamp_to(10)
        assert (bar.start, bar.end) == (10, 10)

        milestone = MilestoneItem(week=15)
        milestone.clamp_to(10)
        assert milestone.week == 10

    def test_length(self):
        """Test the length of a range item."""
        assert BarItem(start=2, end=5.5).length == 3.5


class TestRows:
    """Test row models."""

    def test_label_is_trimmed(self):
        """Test labels are trimmed."""
        assert TaskRow(label="  Sales  ").label == "Sales"

    def test_blank_label_rejected(self):
        """Test blank labels are rejected."""
        with pytest.raises(ValidationError, match="label must not be blank"):
            PhaseRow(label="   ")

    def test_duplicate_item_ids_rejected(self):
        """Test item ids must be unique within a row."""
        with pytest.raises(ValidationError, match="item ids must be unique"):
            TaskRow(label="A", items=[BarItem(id="x", start=1, end=2), MilestoneItem(id="x", week=3)])

    def test_items_parsed_by_type(self):
        """Test items are parsed into the class named by their type."""
        row = TaskRow.model_validate({
            "label": "A",
            "items": [
                {"id": "a", "type": "bar", "start": 1, "end": 2},
                {"id": "b", "type": "discovery", "start": 1, "end": 2},
                {"id": "c", "type": "milestone", "week": 3},
            ],
        })
        assert [type(it) for it in row.items] == [BarItem, DiscoveryItem, MilestoneItem]
        assert row.find_item("c").week == 3
        assert row.item_index("b") == 1
        assert row.item_index("missing") == -1

    def test_phase_row_has_no_items(self):
        """Test phase rows serialize without items."""
        assert "items" not in PhaseRow(label="Phase-1").to_dict()


class TestTimelineDocument:
    """Test the document model and its operations."""

    def test_wire_format_is_camel_case(self, document):
        """Test the document serializes with camelCase keys."""
        data = document.to_dict()
        assert data["weeksCount"] == 20
        assert data["rowHeightMode"] == "auto"
        assert data["manualRowHeight"] == 42
        assert data["manualBarHeight"] == 18
        assert TimelineDocument.model_validate(data) == document

    def test_duplicate_row_ids_rejected(self):
        """Test row ids must be unique."""
        with pytest.raises(ValidationError, match="row ids must be unique"):
            TimelineDocument(rows=[TaskRow(id="r", label="A"), PhaseRow(id="r", label="B")])

    def test_items_past_week_count_rejected(self):
        """Test items must end within the week count."""
        with pytest.raises(ValidationError, match="runs past week"):
            TimelineDocument(weeks_count=4, rows=[TaskRow(label="A", items=[BarItem(start=2, end=5)])])

    def test_starter_document(self, document):
        """Test the built-in starter rows."""
        assert [row.label for row in document.rows] == ["Ramp and Discovery", "Sales Cloud"]
        discovery = document.rows[0].items[0]
        bar = document.rows[1].items[0]
        assert (discovery.type, discovery.start, discovery.end) == ("discovery", 1, 2)
        assert (bar.type, bar.start, bar.end) == ("bar", 2, 5)

    def test_starter_ids_are_stable(self):
        """Test starter documents share ids but not objects."""
        first, second = starter_document(), starter_document()
        assert [r.id for r in first.rows] == [r.id for r in second.rows]
        assert first.rows[0] is not second.rows[0]

    def test_shrinking_weeks_keeps_fitting_items(self, document):
        """Test items that still fit are untouched."""
        assert document.set_weeks_count(5) == 5
        assert (document.rows[1].items[0].start, document.rows[1].items[0].end) == (2, 5)
        assert (document.rows[0].items[0].start, document.rows[0].items[0].end) == (1, 2)

    def test_shrinking_weeks_clamps_items(self, document):
        """Test items past the new last week are clamped."""
        document.set_weeks_count(3)
        bar = document.rows[1].items[0]
        assert (bar.start, bar.end) == (2, 3)

        document.set_weeks_count(1)
        bar = document.rows[1].items[0]
        assert (bar.start, bar.end) == (1, 1)

    def test_weeks_count_is_coerced(self, document):
        """Test the week count is rounded and clamped."""
        assert document.set_weeks_count(0) == 1
        assert document.set_weeks_count(250) == 200
        assert document.set_weeks_count(7.5) == 8
        assert document.set_weeks_count("12") == 12
        assert document.set_weeks_count("abc") == 1

    def test_add_row(self, document):
        """Test adding phase and task rows."""
        phase = document.add_row(RowKind.PHASE, "Phase-1")
        task = document.add_row("task", "   ")
        assert isinstance(phase, PhaseRow)
        assert isinstance(task, TaskRow)
        assert task.label == UNTITLED
        assert document.rows[-2:] == [phase, task]

    def test_add_task_rows_skips_duplicates(self, document):
        """Test bulk add skips labels that already exist."""
        added = document.add_task_rows(["Sales Cloud", " sales cloud ", "Service", "", None, "SERVICE"])
        assert [row.label for row in added] == ["Service"]
        assert len(document.rows) == 3

    def test_delete_row(self, document):
        """Test deleting a row by id."""
        row_id = document.rows[0].id
        assert document.delete_row(row_id)
        assert document.find_row(row_id) is None
        assert not document.delete_row(row_id)

    def test_add_item(self, document):
        """Test new items are ordered, snapped and clamped."""
        row_id = document.rows[1].id
        bar = document.add_item(row_id, ItemType.BAR, 30, 0)
        assert (bar.start, bar.end) == (1, 20)

        discovery = document.add_item(row_id, "discovery", 3.3)
        assert (discovery.start, discovery.end) == (3.5, 3.5)

        assert document.rows[1].items[-2:] == [bar, discovery]

    def test_add_item_needs_task_row(self, document):
        """Test items cannot go on phase rows or missing rows."""
        phase = document.add_row(RowKind.PHASE, "Phase-1")
        assert document.add_item(phase.id, ItemType.BAR, 1, 2) is None
        assert document.add_item("missing", ItemType.BAR, 1, 2) is None

    def test_add_milestone(self, document):
        """Test milestone weeks are rounded and clamped."""
        row_id = document.rows[0].id
        assert document.add_milestone(row_id, 2.5).week == 3
        assert document.add_milestone(row_id, 99).week == 20
        assert document.add_item(row_id, ItemType.MILESTONE, 4).week == 4

    def test_remove_item(self, document):
        """Test removing an item by id."""
        row = document.rows[1]
        item_id = row.items[0].id
        assert document.remove_item(row.id, item_id)
        assert row.items == []
        assert not document.remove_item(row.id, item_id)

    def test_swap_rows(self, document):
        """Test swapping rows by index."""
        first, second = document.rows
        assert document.swap_rows(0, 1)
        assert document.rows == [second, first]
        assert not document.swap_rows(0, 2)
        assert not document.swap_rows(-1, 0)
        assert document.rows == [second, first]

    def test_sizing_setters(self, document):
        """Test manual sizes are clamped and switch the mode."""
        assert document.set_manual_row_height(100) == 64
        assert document.row_height_mode is SizingMode.MANUAL
        assert document.set_manual_bar_height("abc") == 18
        assert document.bar_height_mode is SizingMode.MANUAL

        document.set_row_height_mode("auto")
        assert document.row_height_mode is SizingMode.AUTO
        assert document.manual_row_height == 64


class TestExportEnvelope:
    """Test the export wrapper."""

    def test_round_trip(self, document):
        """Test the envelope serializes and parses back."""
        envelope = ExportEnvelope(
            app="LRT Timeline Generator",
            format_version=4,
            exported_at=datetime(2024, 3, 5, 9, 7, tzinfo=timezone.utc),
            document=document,
        )
        data = envelope.to_dict()
        assert set(data) == {"app", "formatVersion", "exportedAt", "model"}
        assert data["model"] == document.to_dict()

        loaded = ExportEnvelope.model_validate(data)
        assert loaded.document == document
        assert loaded.exported_at == envelope.exported_at
