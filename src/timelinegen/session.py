"""
EditorSession - the state of one open timeline editor.

A session owns the live document (through its HistoryManager), the interaction state
and the container width reported by the renderer. Nothing here is global, so several
sessions can be open at once.
"""
import json
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from .config import EditorConfig
from .history import HistoryManager
from .interaction import InteractionController, InteractiveMode
from .io import build_export_payload, extract_model, parse_import_text
from .keys import Shortcut, resolve_shortcut
from .logs import get_logger
from .models import ItemType, RowKind, TaskRow, TimelineDocument, starter_document
from .sanitize import sanitize
from .sizing import ColumnMetrics, Sizing, column_metrics, resolve_sizing

log = get_logger("session")

PHASE_LABEL_PATTERN = re.compile(r'^phase[-\s]*(\d+)$', re.IGNORECASE)

class EditorSession:
    """Main entry point for a renderer: document, history and gestures together."""

    def __init__(self, document: Optional[TimelineDocument] = None, config: Optional[EditorConfig] = None):
        self.config = config or EditorConfig()
        if document is None:
            document = starter_document(self.config.default_weeks)
        self.history = HistoryManager(document)
        self.interaction = InteractionController(self.history)
        self.container_width = 0.0
        self.next_phase_label = self.config.first_phase_label
        self.selected_row_id = self._first_task_row_id()

    @property
    def document(self) -> TimelineDocument:
        return self.history.document

    @property
    def interactive_on(self) -> bool:
        return self.interaction.interactive_on

    @property
    def mode(self) -> InteractiveMode:
        return self.interaction.mode

    @property
    def selected_item(self):
        return self.interaction.selected_item

    @property
    def swap_first_row_id(self) -> Optional[str]:
        return self.interaction.swap_first_row_id

    def _first_task_row_id(self, excluding: Optional[str] = None) -> str:
        return next((r.id for r in self.document.task_rows() if r.id != excluding), '')

    def _commit(self, operation: Callable[..., Any], *args) -> Any:
        """Run a TimelineDocument operation on a draft as one undoable step and return its result."""
        outcome: Dict[str, Any] = {}

        def mutate(draft: TimelineDocument):
            outcome['result'] = operation(draft, *args)

        self.history.commit(mutate)
        return outcome.get('result')

    # Presentation

    def resize(self, container_width: float):
        self.container_width = max(0.0, float(container_width))

    def sizing(self) -> Sizing:
        return resolve_sizing(self.document)

    def columns(self) -> ColumnMetrics:
        return column_metrics(self.container_width, self.document.weeks_count, self.config.left_column_px)

    # Document operations

    def set_weeks_count(self, weeks: Any) -> int:
        return self._commit(TimelineDocument.set_weeks_count, weeks)

    def add_task_row(self, label: Any):
        row = self._commit(TimelineDocument.add_row, RowKind.TASK, label)
        if not self.selected_row_id:
            self.selected_row_id = row.id
        return row

    def add_task_rows(self, labels: Iterable[Any]) -> List[TaskRow]:
        """Add a task row per label, skipping labels that already have a row."""
        labels = list(labels)
        return self._commit(TimelineDocument.add_task_rows, labels)

    def add_phase_row(self, label: Any = None):
        """Add a phase band; without a label the suggested ``Phase-N`` is used."""
        label = self.next_phase_label if label is None else label
        row = self._commit(TimelineDocument.add_row, RowKind.PHASE, label)
        match = PHASE_LABEL_PATTERN.match(row.label)
        if match and int(match.group(1)) >= 1:
            self.next_phase_label = f"Phase-{int(match.group(1)) + 1}"
        return row

    def delete_row(self, row_id: str) -> bool:
        if self.document.row_index(row_id) < 0:
            return False
        self._commit(TimelineDocument.delete_row, row_id)
        self.interaction.forget_row(row_id)
        if self.selected_row_id == row_id:
            self.selected_row_id = self._first_task_row_id(excluding=row_id)
        return True

    def add_item(self, item_type=ItemType.BAR, start: Any = None, end: Any = None, row_id: Optional[str] = None):
        """Add a bar or discovery range to a task row (the selected row by default).

        Missing bounds fall back to the configured defaults for that item type.
        """
        row_id = row_id or self.selected_row_id
        if self.document.find_task_row(row_id) is None:
            return None
        item_type = ItemType(item_type)
        if item_type is ItemType.MILESTONE:
            return self.add_milestone(start, row_id=row_id)
        default_start, default_end = (self.config.default_bar_range if item_type is ItemType.BAR
                                      else self.config.default_discovery_range)
        start = default_start if start is None else start
        end = default_end if end is None else end
        return self._commit(TimelineDocument.add_item, row_id, item_type, start, end)

    def add_bar(self, start: Any = None, end: Any = None, row_id: Optional[str] = None):
        return self.add_item(ItemType.BAR, start, end, row_id)

    def add_discovery(self, start: Any = None, end: Any = None, row_id: Optional[str] = None):
        return self.add_item(ItemType.DISCOVERY, start, end, row_id)

    def add_milestone(self, week: Any, row_id: Optional[str] = None):
        row_id = row_id or self.selected_row_id
        if self.document.find_task_row(row_id) is None:
            return None
        return self._commit(TimelineDocument.add_milestone, row_id, week)

    def remove_item(self, row_id: str, item_id: str) -> bool:
        if self.document.find_item(row_id, item_id) is None:
            return False
        self._commit(TimelineDocument.remove_item, row_id, item_id)
        self.interaction.forget_item(row_id, item_id)
        return True

    def swap_rows(self, first: int, second: int) -> bool:
        count = len(self.document.rows)
        if not (0 <= first < count and 0 <= second < count):
            return False
        return self._commit(TimelineDocument.swap_rows, first, second)

    def set_row_height_mode(self, mode):
        self._commit(TimelineDocument.set_row_height_mode, mode)

    def set_manual_row_height(self, px: Any) -> int:
        return self._commit(TimelineDocument.set_manual_row_height, px)

    def set_bar_height_mode(self, mode):
        self._commit(TimelineDocument.set_bar_height_mode, mode)

    def set_manual_bar_height(self, px: Any) -> int:
        return self._commit(TimelineDocument.set_manual_bar_height, px)

    # History

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # Gestures

    def set_interactive(self, on: bool):
        self.interaction.set_interactive(on)

    def toggle_interactive(self) -> bool:
        return self.interaction.toggle_interactive()

    def set_mode(self, mode: InteractiveMode):
        self.interaction.set_mode(mode)

    def cancel_swap(self):
        self.interaction.cancel_swap()

    def click_row(self, row_id: str) -> bool:
        return self.interaction.click_row(row_id)

    def click_item(self, row_id: str, item_id: str) -> bool:
        return self.interaction.click_item(row_id, item_id)

    def pointer_down(self, row_id: str, item_id: str, action, client_x: float) -> bool:
        # Column width is measured once, at gesture start.
        return self.interaction.begin_drag(row_id, item_id, action, client_x, self.columns().half_col_px)

    def pointer_move(self, client_x: float) -> bool:
        return self.interaction.drag_to(client_x)

    def pointer_up(self) -> bool:
        return self.interaction.end_drag()

    def handle_key(self, key: str, *, ctrl: bool = False, meta: bool = False, shift: bool = False,
                   platform: Optional[str] = None) -> Optional[Shortcut]:
        """Dispatch a key press; returns the shortcut that ran, if any."""
        shortcut = resolve_shortcut(key, ctrl=ctrl, meta=meta, shift=shift, platform=platform)
        if shortcut is Shortcut.UNDO:
            self.undo()
        elif shortcut is Shortcut.REDO:
            self.redo()
        elif shortcut is Shortcut.CANCEL_SWAP:
            self.cancel_swap()
        return shortcut

    # Import / export

    def export_payload(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        return build_export_payload(self.document, self.config, now)

    def export_json(self, now: Optional[datetime] = None) -> str:
        return json.dumps(self.export_payload(now), indent=2, ensure_ascii=False)

    def import_data(self, parsed: Any) -> TimelineDocument:
        """Install an already decoded import, sanitized, as a fresh starting point."""
        return self._install_import(sanitize(extract_model(parsed)))

    def import_text(self, text: str) -> TimelineDocument:
        """
        Import exported JSON text.

        Raises:
            ImportFormatError: The text is not JSON; the current document is kept.
        """
        return self._install_import(parse_import_text(text))

    def _install_import(self, document: TimelineDocument) -> TimelineDocument:
        self.history.reset(document)
        self.interaction.reset()
        self.selected_row_id = self._first_task_row_id()
        log.info(f"Imported timeline with {len(document.rows)} row(s) over {document.weeks_count} week(s)")
        return document
