"""
Timeline Generator - an editing engine for week-based Gantt timelines.

A timeline is an ordered list of rows over a fixed number of weeks:
Phase bands separate groups of Task rows, and task rows hold bars, discovery
ranges (both in half-week steps) and whole-week milestones.
"""

from .version import VERSION, FORMAT_VERSION
from .models import (
    SizingMode,
    RowKind,
    ItemType,
    BarItem,
    DiscoveryItem,
    MilestoneItem,
    PhaseRow,
    TaskRow,
    TimelineDocument,
    ExportEnvelope,
    starter_document,
)
from .sanitize import sanitize
from .history import HistoryManager
from .interaction import InteractionController, InteractiveMode, DragAction
from .sizing import Sizing, resolve_sizing
from .session import EditorSession

__version__ = VERSION

__all__ = [
    "VERSION",
    "FORMAT_VERSION",
    "SizingMode",
    "RowKind",
    "ItemType",
    "BarItem",
    "DiscoveryItem",
    "MilestoneItem",
    "PhaseRow",
    "TaskRow",
    "TimelineDocument",
    "ExportEnvelope",
    "starter_document",
    "sanitize",
    "HistoryManager",
    "InteractionController",
    "InteractiveMode",
    "DragAction",
    "Sizing",
    "resolve_sizing",
    "EditorSession",
]
