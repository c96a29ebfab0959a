"""
Pointer interaction: dragging items in Edit mode and reordering rows in Swap mode.

A drag is tracked by a ``DragGesture`` that lives from pointer-down to pointer-up.
Every pointer-move recomputes the item geometry from the geometry recorded at
pointer-down and the total displacement, so the result does not depend on how many
move events arrived. Intermediate frames are installed without history; the whole
gesture becomes a single undo step when it ends.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .grid import clamp, clamp_half, round_half_up, snap_half
from .history import HistoryManager
from .logs import get_logger
from .models import Item, MilestoneItem, TaskRow, TimelineDocument

log = get_logger("interaction")

class InteractiveMode(Enum):
    EDIT = "edit"
    SWAP = "swap"

class DragAction(Enum):
    MOVE = "move"
    RESIZE_LEFT = "resize-left"
    RESIZE_RIGHT = "resize-right"

@dataclass(frozen=True)
class ItemRef:
    row_id: str
    item_id: str

@dataclass
class DragGesture:
    """State of one pointer-down -> move... -> pointer-up interaction."""

    row_id: str
    item_id: str
    item_type: str
    action: DragAction
    start_x: float
    original: Item
    half_col_px: float
    snapshot: TimelineDocument
    changed: bool = False

    def half_steps(self, client_x: float) -> int:
        """Whole half-week columns the pointer has travelled since pointer-down."""
        return round_half_up((client_x - self.start_x) / self.half_col_px)

    def apply(self, document: TimelineDocument, delta_weeks: float) -> bool:
        """Write the geometry for ``delta_weeks`` into ``document``.

        Returns False when the dragged item no longer exists in ``document``.
        """
        row = document.find_row(self.row_id)
        if not isinstance(row, TaskRow):
            return False
        index = row.item_index(self.item_id)
        if index < 0:
            return False

        weeks = document.weeks_count
        item = row.items[index]
        orig = self.original

        if isinstance(orig, MilestoneItem):
            item.week = int(clamp(round_half_up(orig.week + delta_weeks), 1, weeks))
            return True

        if self.action is DragAction.MOVE:
            length = orig.end - orig.start
            item.start = clamp_half(orig.start + delta_weeks, 1, weeks - length)
            item.end = snap_half(item.start + length)
        elif self.action is DragAction.RESIZE_LEFT:
            item.start = clamp_half(orig.start + delta_weeks, 1, orig.end)
        elif self.action is DragAction.RESIZE_RIGHT:
            item.end = clamp_half(orig.end + delta_weeks, orig.start, weeks)
        return True

class InteractionController:
    """Turns row clicks, item clicks and pointer drags into document changes."""

    def __init__(self, history: HistoryManager):
        self.history = history
        self.interactive_on = False
        self.mode = InteractiveMode.EDIT
        self.selected_item: Optional[ItemRef] = None
        self.swap_first_row_id: Optional[str] = None
        self.gesture: Optional[DragGesture] = None

    @property
    def editing(self) -> bool:
        return self.interactive_on and self.mode is InteractiveMode.EDIT

    @property
    def swapping(self) -> bool:
        return self.interactive_on and self.mode is InteractiveMode.SWAP

    def set_interactive(self, on: bool):
        self.interactive_on = bool(on)
        self.mode = InteractiveMode.EDIT
        self.selected_item = None
        self.swap_first_row_id = None

    def toggle_interactive(self) -> bool:
        self.set_interactive(not self.interactive_on)
        return self.interactive_on

    def set_mode(self, mode):
        self.mode = InteractiveMode(mode)
        if self.mode is InteractiveMode.EDIT:
            self.swap_first_row_id = None
        else:
            self.selected_item = None

    def reset(self):
        """Back to the initial state, e.g. after an import."""
        self.gesture = None
        self.set_interactive(False)

    def forget_row(self, row_id: str):
        """Drop references to a row that is being deleted."""
        if self.swap_first_row_id == row_id:
            self.swap_first_row_id = None
        if self.selected_item and self.selected_item.row_id == row_id:
            self.selected_item = None

    def forget_item(self, row_id: str, item_id: str):
        if self.selected_item == ItemRef(row_id, item_id):
            self.selected_item = None

    # Swap mode

    def click_row(self, row_id: str) -> bool:
        """Handle a click on a row in Swap mode. Returns True when rows were swapped."""
        if not self.swapping:
            return False

        if not self.swap_first_row_id:
            self.swap_first_row_id = row_id
            return False

        if self.swap_first_row_id == row_id:
            self.swap_first_row_id = None
            return False

        document = self.history.document
        first = document.row_index(self.swap_first_row_id)
        second = document.row_index(row_id)
        self.swap_first_row_id = None
        if first < 0 or second < 0:
            return False

        self.history.commit(lambda draft: draft.swap_rows(first, second))
        log.debug(f"Swapped rows at positions {first} and {second}")
        return True

    def cancel_swap(self):
        self.swap_first_row_id = None

    # Edit mode

    def click_item(self, row_id: str, item_id: str) -> bool:
        """Outside interactive mode a click removes the item; in Edit mode it selects it."""
        if not self.interactive_on:
            if self.history.document.find_item(row_id, item_id) is None:
                return False
            self.history.commit(lambda draft: draft.remove_item(row_id, item_id))
            self.forget_item(row_id, item_id)
            return True
        if self.mode is InteractiveMode.EDIT:
            self.selected_item = ItemRef(row_id, item_id)
            return True
        return False

    def begin_drag(self, row_id: str, item_id: str, action, client_x: float, half_col_px: float) -> bool:
        if not self.editing:
            return False
        if self.gesture is not None:
            self.end_drag()

        document = self.history.document
        item = document.find_item(row_id, item_id)
        if item is None:
            return False

        self.selected_item = ItemRef(row_id, item_id)
        self.gesture = DragGesture(
            row_id=row_id,
            item_id=item_id,
            item_type=item.type,
            action=DragAction(action),
            start_x=client_x,
            original=item.model_copy(deep=True),
            half_col_px=half_col_px or 1,
            snapshot=self.history.snapshot(),
        )
        log.debug(f"Drag started: {self.gesture.action.value} {item.type} {item_id}")
        return True

    def drag_to(self, client_x: float) -> bool:
        """Apply a pointer-move. Returns True when a new frame was installed."""
        gesture = self.gesture
        if gesture is None:
            return False

        steps = gesture.half_steps(client_x)
        if steps == 0 and not gesture.changed:
            return False
        gesture.changed = True

        draft = self.history.snapshot()
        if not gesture.apply(draft, steps * 0.5):
            return False
        self.history.install(draft)
        return True

    def end_drag(self) -> bool:
        """Finish the gesture. Returns True when it produced a history entry."""
        gesture, self.gesture = self.gesture, None
        if gesture is None or not gesture.changed:
            return False
        self.history.record(gesture.snapshot)
        log.debug(f"Drag finished: {gesture.action.value} {gesture.item_type} {gesture.item_id}")
        return True
