"""
Undo/redo history around the live document.

The manager owns the live document slot. ``commit`` records one undoable step;
``install`` replaces the live value without touching history (drag frames use it), and
``record`` pushes a snapshot captured earlier (gesture end uses it).
"""
from typing import Callable, List, Optional

from .logs import get_logger
from .models import TimelineDocument

log = get_logger("history")

Mutator = Callable[[TimelineDocument], Optional[TimelineDocument]]
Listener = Callable[[TimelineDocument], None]

class HistoryManager:
    """Two stacks of full document snapshots plus the live document."""

    def __init__(self, document: TimelineDocument):
        self._document = document
        # Older -> newer; the top is the last element.
        self.past: List[TimelineDocument] = []
        # Immediate next -> furthest; the front is index 0.
        self.future: List[TimelineDocument] = []
        self._listeners: List[Listener] = []

    @property
    def document(self) -> TimelineDocument:
        """The live document. Treat it as read-only; change it through ``commit``."""
        return self._document

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new document after every install.

        Returns a function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> TimelineDocument:
        """An independent deep copy of the live document."""
        return self._document.model_copy(deep=True)

    def install(self, document: TimelineDocument):
        self._document = document
        for listener in list(self._listeners):
            listener(document)

    def commit(self, mutator: Mutator) -> TimelineDocument:
        """
        Apply ``mutator`` to a private draft as one undoable step.

        Args:
            mutator: Receives a deep copy of the live document. It may change the draft in
                place or return a replacement document.

        Returns:
            The newly installed document.
        """
        previous = self.snapshot()
        draft = self.snapshot()
        result = mutator(draft)
        next_document = result if isinstance(result, TimelineDocument) else draft

        self.past.append(previous)
        self.future.clear()
        log.debug(f"Committed change; {len(self.past)} step(s) to undo")
        self.install(next_document)
        return next_document

    def record(self, snapshot: TimelineDocument):
        """Push a snapshot taken before changes already installed with ``install``."""
        self.past.append(snapshot)
        self.future.clear()
        log.debug(f"Recorded gesture; {len(self.past)} step(s) to undo")

    def undo(self) -> bool:
        if not self.past:
            return False
        previous = self.past.pop()
        self.future.insert(0, self.snapshot())
        self.install(previous.model_copy(deep=True))
        log.debug(f"Undo; {len(self.past)} left, {len(self.future)} to redo")
        return True

    def redo(self) -> bool:
        if not self.future:
            return False
        following = self.future.pop(0)
        self.past.append(self.snapshot())
        self.install(following.model_copy(deep=True))
        log.debug(f"Redo; {len(self.past)} to undo, {len(self.future)} left")
        return True

    def reset(self, document: TimelineDocument):
        """Install ``document`` as a fresh starting point with empty history."""
        self.past.clear()
        self.future.clear()
        self.install(document)
