"""Unit tests for EditorSession."""

import json
from datetime import datetime, timezone

import pytest

from timelinegen.config import EditorConfig
from timelinegen.interaction import InteractiveMode
from timelinegen.keys import Shortcut
from timelinegen.models import BarItem, DiscoveryItem, PhaseRow, SizingMode, starter_document
from timelinegen.recovery import ImportFormatError
from timelinegen.session import EditorSession


@pytest.fixture
def session():
    return EditorSession()


class TestSetup:
    """Test a new session."""

    def test_defaults(self, session):
        """Test a new session selects the first task row."""
        assert session.document == starter_document()
        assert session.selected_row_id == session.document.rows[0].id
        assert session.next_phase_label == "Phase-1"
        assert not session.history.can_undo

    def test_config_week_count(self):
        """Test the configured week count is used for new documents."""
        session = EditorSession(config=EditorConfig(default_weeks=8))
        assert session.document.weeks_count == 8

    def test_columns_follow_resize(self, session):
        """Test column metrics follow the container width."""
        session.resize(1280)
        assert session.columns().half_col_px == 25
        session.resize(-50)
        assert session.container_width == 0


class TestDocumentOperations:
    """Test editing through the session."""

    def test_every_change_is_undoable(self, session):
        """Test each operation is one undo step."""
        session.set_weeks_count(5)
        session.add_task_row("Service")
        session.set_manual_row_height(30)
        assert len(session.history.past) == 3

        session.undo()
        session.undo()
        session.undo()
        assert session.document == starter_document()

    def test_phase_labels_count_up(self, session):
        """Test the suggested phase label follows the last numbered phase."""
        assert session.add_phase_row().label == "Phase-1"
        assert session.add_phase_row().label == "Phase-2"
        session.add_phase_row("phase 7")
        assert session.next_phase_label == "Phase-8"
        session.add_phase_row("Kickoff")
        assert session.next_phase_label == "Phase-8"
        assert isinstance(session.document.rows[-1], PhaseRow)

    def test_add_task_rows(self, session):
        """Test bulk row adds are one undo step."""
        added = session.add_task_rows(["Service", "Sales Cloud"])
        assert [row.label for row in added] == ["Service"]
        assert len(session.history.past) == 1

    def test_default_item_ranges(self, session):
        """Test new items use the configured default ranges."""
        bar = session.add_bar()
        discovery = session.add_discovery()
        assert isinstance(bar, BarItem)
        assert (bar.start, bar.end) == (2, 6)
        assert isinstance(discovery, DiscoveryItem)
        assert (discovery.start, discovery.end) == (1, 2)
        assert session.document.rows[0].items[-2:] == [bar, discovery]

    def test_items_on_explicit_row(self, session):
        """Test items can target a row other than the selected one."""
        row_id = session.document.rows[1].id
        bar = session.add_bar(3, 4.5, row_id=row_id)
        assert session.document.find_item(row_id, bar.id) == bar
        assert session.add_milestone(6, row_id=row_id).week == 6
        assert session.add_item("milestone", 7, row_id=row_id).week == 7

    def test_rejected_targets_leave_no_history(self, session):
        """Test operations on bad targets record nothing."""
        phase = session.add_phase_row()
        before = len(session.history.past)
        assert session.add_bar(row_id=phase.id) is None
        assert session.add_milestone(3, row_id="missing") is None
        assert not session.delete_row("missing")
        assert not session.remove_item(phase.id, "missing")
        assert not session.swap_rows(0, 10)
        assert len(session.history.past) == before

    def test_delete_selected_row(self, session):
        """Test deleting the selected row moves the selection."""
        first, second = [row.id for row in session.document.rows]
        assert session.delete_row(first)
        assert session.selected_row_id == second
        assert session.delete_row(second)
        assert session.selected_row_id == ""
        assert session.add_bar() is None

        row = session.add_task_row("Fresh")
        assert session.selected_row_id == row.id

    def test_delete_row_forgets_swap_anchor(self, session):
        """Test deleting the swap anchor clears it."""
        session.set_interactive(True)
        session.set_mode(InteractiveMode.SWAP)
        row_id = session.document.rows[0].id
        session.click_row(row_id)
        session.delete_row(row_id)
        assert session.swap_first_row_id is None

    def test_remove_item_forgets_selection(self, session):
        """Test removing the selected item clears the selection."""
        row = session.document.rows[1]
        session.set_interactive(True)
        session.click_item(row.id, row.items[0].id)
        assert session.remove_item(row.id, row.items[0].id)
        assert session.interaction.selected_item is None

    def test_sizing_modes(self, session):
        """Test sizing follows the auto and manual modes."""
        session.set_manual_bar_height(12)
        assert session.sizing().bar_height_px == 12
        session.set_bar_height_mode(SizingMode.AUTO)
        assert session.sizing().bar_height_px == 22
        session.set_row_height_mode("manual")
        assert session.sizing().row_height_px == 42


class TestGestures:
    """Test pointer input through the session."""

    def test_drag_bar(self, session):
        """Test a drag uses the column width at gesture start."""
        session.resize(1280)
        session.set_interactive(True)
        row = session.document.rows[1]

        assert session.pointer_down(row.id, row.items[0].id, "move", 400)
        session.pointer_move(475)
        assert session.pointer_up()

        bar = session.document.rows[1].items[0]
        assert (bar.start, bar.end) == (3.5, 6.5)
        session.undo()
        bar = session.document.rows[1].items[0]
        assert (bar.start, bar.end) == (2, 5)

    def test_double_swap(self, session):
        """Test two swaps of the same rows restore the order."""
        order = [row.id for row in session.document.rows]
        session.set_interactive(True)
        session.set_mode(InteractiveMode.SWAP)
        for _ in range(2):
            session.click_row(order[0])
            session.click_row(order[1])
        assert [row.id for row in session.document.rows] == order


class TestKeys:
    """Test keyboard shortcuts."""

    def test_undo_redo_keys(self, session):
        """Test undo and redo shortcuts per platform."""
        session.set_weeks_count(5)
        assert session.handle_key("z", ctrl=True, platform="Linux x86_64") is Shortcut.UNDO
        assert session.document.weeks_count == 20
        assert session.handle_key("y", ctrl=True, platform="Win32") is Shortcut.REDO
        assert session.document.weeks_count == 5
        assert session.handle_key("Z", meta=True, shift=True, platform="MacIntel") is Shortcut.REDO

    def test_wrong_modifier_does_nothing(self, session):
        """Test Ctrl is not the undo modifier on a Mac."""
        session.set_weeks_count(5)
        assert session.handle_key("z", ctrl=True, platform="MacIntel") is None
        assert session.document.weeks_count == 5

    def test_escape_cancels_swap(self, session):
        """Test Escape cancels a pending swap."""
        session.set_interactive(True)
        session.set_mode(InteractiveMode.SWAP)
        session.click_row(session.document.rows[0].id)
        assert session.handle_key("Escape") is Shortcut.CANCEL_SWAP
        assert session.swap_first_row_id is None


class TestImportExport:
    """Test moving documents in and out of a session."""

    def test_export_payload(self, session):
        """Test the export envelope fields."""
        now = datetime(2024, 3, 5, 9, 7, tzinfo=timezone.utc)
        payload = session.export_payload(now)
        assert payload["app"] == "LRT Timeline Generator"
        assert payload["formatVersion"] == 4
        assert payload["exportedAt"].startswith("2024-03-05T09:07:00")
        assert payload["model"] == session.document.to_dict()

    def test_round_trip(self, session):
        """Test an exported session imports into another."""
        session.add_phase_row()
        session.add_bar(2.5, 7)
        exported = session.export_json()

        other = EditorSession()
        other.import_text(exported)
        assert other.document == session.document

    def test_import_resets_state(self, session):
        """Test importing clears history and interaction state."""
        session.set_weeks_count(5)
        session.set_interactive(True)
        session.set_mode(InteractiveMode.SWAP)

        document = session.import_data({"model": {"weeksCount": 9, "rows": [
            {"kind": "phase", "label": "Phase-1"},
            {"id": "t", "label": "Task"},
        ]}})
        assert document.weeks_count == 9
        assert not session.history.can_undo
        assert not session.interactive_on
        assert session.mode is InteractiveMode.EDIT
        assert session.selected_row_id == "t"

    def test_bare_document_import(self, session):
        """Test a document without an envelope imports."""
        session.import_data({"weeksCount": 6})
        assert session.document.weeks_count == 6

    def test_invalid_import_keeps_document(self, session):
        """Test a failed import keeps the document and history."""
        session.set_weeks_count(5)
        with pytest.raises(ImportFormatError, match="Invalid JSON file"):
            session.import_text("{not json")
        assert session.document.weeks_count == 5
        assert session.history.can_undo

    def test_import_garbage_json(self, session):
        """Test JSON without a document gives the starter document."""
        session.import_text(json.dumps([1, 2, 3]))
        assert session.document == starter_document()


class TestRendererState:
    """Test the interaction flags exposed to renderers."""

    def test_flags_follow_interaction(self, session):
        """Test the session reports interaction state."""
        assert not session.interactive_on
        assert session.toggle_interactive()
        row = session.document.rows[1]
        session.click_item(row.id, row.items[0].id)
        assert session.selected_item.item_id == row.items[0].id

        session.set_mode(InteractiveMode.SWAP)
        assert session.mode is InteractiveMode.SWAP
        assert session.selected_item is None
        session.click_row(row.id)
        assert session.swap_first_row_id == row.id
        session.cancel_swap()
        assert session.swap_first_row_id is None
