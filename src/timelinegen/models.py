import json
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union
from uuid import uuid4

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .grid import clamp, clamp_half, round_half_up, to_number

MIN_WEEKS = 1
MAX_WEEKS = 200
DEFAULT_WEEKS = 20

ROW_HEIGHT_MIN = 18
ROW_HEIGHT_MAX = 64
DEFAULT_MANUAL_ROW_HEIGHT = 42

BAR_HEIGHT_MIN = 6
BAR_HEIGHT_MAX = 60
DEFAULT_MANUAL_BAR_HEIGHT = 18

UNTITLED = "Untitled"

class SizingMode(Enum):
    AUTO = "auto"
    MANUAL = "manual"

class RowKind(Enum):
    PHASE = "phase"
    TASK = "task"

class ItemType(Enum):
    BAR = "bar"
    DISCOVERY = "discovery"
    MILESTONE = "milestone"

def new_id() -> str:
    """Generate a fresh opaque identifier for a row or item."""
    return str(uuid4())

def clean_label(label: Any) -> str:
    """Trim a label, falling back to the default for blank or non-string values."""
    if isinstance(label, str) and label.strip():
        return label.strip()
    return UNTITLED

def _clamp_int(value: Any, default: int, lo: int, hi: int) -> int:
    return int(clamp(round_half_up(to_number(value, default)), lo, hi))

class TimelineBaseModel(BaseModel):
    """Base for all document models: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)

class RangeItem(TimelineBaseModel):
    """An item spanning ``[start, end]`` in half-week steps."""

    id: str = Field(default_factory=new_id, min_length=1, description="Identifier, unique within the row")
    start: float = Field(ge=MIN_WEEKS, multiple_of=0.5, description="First week covered, in half-week steps")
    end: float = Field(ge=MIN_WEEKS, multiple_of=0.5, description="Last week covered, in half-week steps")

    @model_validator(mode='after')
    def validate_order(self):
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    @field_serializer('start', 'end')
    def serialize_week(self, value: float) -> Union[int, float]:
        return int(value) if float(value).is_integer() else value

    @property
    def length(self) -> float:
        return self.end - self.start

    def clamp_to(self, weeks_count: int):
        """Pull both ends inside ``[1, weeks_count]``, keeping ``start <= end``."""
        start = clamp_half(self.start, MIN_WEEKS, weeks_count)
        end = clamp_half(self.end, MIN_WEEKS, weeks_count)
        self.start, self.end = min(start, end), max(start, end)

class BarItem(RangeItem):
    type: Literal["bar"] = "bar"

class DiscoveryItem(RangeItem):
    type: Literal["discovery"] = "discovery"

class MilestoneItem(TimelineBaseModel):
    """A point item sitting on a whole week."""

    id: str = Field(default_factory=new_id, min_length=1, description="Identifier, unique within the row")
    type: Literal["milestone"] = "milestone"
    week: int = Field(ge=MIN_WEEKS, description="Week the milestone marks")

    def clamp_to(self, weeks_count: int):
        self.week = int(clamp(self.week, MIN_WEEKS, weeks_count))

Item = Annotated[Union[BarItem, DiscoveryItem, MilestoneItem], Field(discriminator="type")]

RANGE_ITEM_TYPES = {
    ItemType.BAR: BarItem,
    ItemType.DISCOVERY: DiscoveryItem,
}

class _RowBase(TimelineBaseModel):
    id: str = Field(default_factory=new_id, min_length=1, description="Identifier, unique within the document")
    label: str = Field(default=UNTITLED, description="Text shown in the left column")

    @field_validator('label')
    @classmethod
    def validate_label(cls, v):
        if not v.strip():
            raise ValueError("label must not be blank")
        return v.strip()

class PhaseRow(_RowBase):
    """A full-width band; it holds no items and only takes part in row swaps."""

    kind: Literal["phase"] = "phase"

class TaskRow(_RowBase):
    """A row of bars, discovery ranges and milestones."""

    kind: Literal["task"] = "task"
    items: List[Item] = Field(
        default_factory=list,
        description="Items in paint order"
    )

    @model_validator(mode='after')
    def validate_item_ids(self):
        ids = [item.id for item in self.items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"item ids must be unique within row {self.id}")
        return self

    def find_item(self, item_id: str) -> Optional[Item]:
        """Find an item by id."""
        return next((it for it in self.items if it.id == item_id), None)

    def item_index(self, item_id: str) -> int:
        return next((i for i, it in enumerate(self.items) if it.id == item_id), -1)

Row = Annotated[Union[PhaseRow, TaskRow], Field(discriminator="kind")]

class TimelineDocument(TimelineBaseModel):
    """The timeline being edited: week count, sizing modes and the ordered rows.

    The mutating methods change this instance in place. The editor only ever calls them
    on a private draft copy, so a document that has been installed or stored in history
    is never modified.
    """

    weeks_count: int = Field(default=DEFAULT_WEEKS, ge=MIN_WEEKS, le=MAX_WEEKS, description="Number of week columns")
    rows: List[Row] = Field(
        default_factory=list,
        description="Rows in visual stacking order"
    )
    row_height_mode: SizingMode = Field(default=SizingMode.AUTO, description="Whether row height follows the row count")
    manual_row_height: int = Field(
        default=DEFAULT_MANUAL_ROW_HEIGHT, ge=ROW_HEIGHT_MIN, le=ROW_HEIGHT_MAX,
        description="Row height in px used in manual mode"
    )
    bar_height_mode: SizingMode = Field(default=SizingMode.AUTO, description="Whether bar height follows the row height")
    manual_bar_height: int = Field(
        default=DEFAULT_MANUAL_BAR_HEIGHT, ge=BAR_HEIGHT_MIN, le=BAR_HEIGHT_MAX,
        description="Bar height in px used in manual mode"
    )

    @model_validator(mode='after')
    def validate_layout(self):
        row_ids = [row.id for row in self.rows]
        if len(row_ids) != len(set(row_ids)):
            raise ValueError("row ids must be unique")
        for row in self.task_rows():
            for item in row.items:
                last = item.week if isinstance(item, MilestoneItem) else item.end
                if last > self.weeks_count:
                    raise ValueError(f"item {item.id} runs past week {self.weeks_count}")
        return self

    def find_row(self, row_id: str) -> Optional[Row]:
        """Find a row by id."""
        return next((r for r in self.rows if r.id == row_id), None)

    def find_task_row(self, row_id: str) -> Optional[TaskRow]:
        row = self.find_row(row_id)
        return row if isinstance(row, TaskRow) else None

    def find_item(self, row_id: str, item_id: str) -> Optional[Item]:
        row = self.find_task_row(row_id)
        return row.find_item(item_id) if row else None

    def row_index(self, row_id: str) -> int:
        return next((i for i, r in enumerate(self.rows) if r.id == row_id), -1)

    def task_rows(self) -> List[TaskRow]:
        return [r for r in self.rows if isinstance(r, TaskRow)]

    def set_weeks_count(self, weeks: Any) -> int:
        """Change the week count and pull every item back inside the new bound."""
        self.weeks_count = _clamp_int(weeks, MIN_WEEKS, MIN_WEEKS, MAX_WEEKS)
        for row in self.task_rows():
            for item in row.items:
                item.clamp_to(self.weeks_count)
        return self.weeks_count

    def add_row(self, kind: Union[RowKind, str] = RowKind.TASK, label: Any = None) -> Row:
        kind = RowKind(kind)
        if kind is RowKind.PHASE:
            row = PhaseRow(label=clean_label(label))
        else:
            row = TaskRow(label=clean_label(label))
        self.rows.append(row)
        return row

    def add_task_rows(self, labels: Iterable[Any]) -> List[TaskRow]:
        """Append a task row per label, skipping labels already used by a task row."""
        seen = {row.label.strip().lower() for row in self.task_rows()}
        added = []
        for label in labels:
            if not isinstance(label, str) or not label.strip():
                continue
            key = label.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            row = TaskRow(label=label.strip())
            self.rows.append(row)
            added.append(row)
        return added

    def delete_row(self, row_id: str) -> bool:
        index = self.row_index(row_id)
        if index < 0:
            return False
        del self.rows[index]
        return True

    def add_item(self, row_id: str, item_type: Union[ItemType, str] = ItemType.BAR,
                 start: Any = MIN_WEEKS, end: Any = None) -> Optional[Item]:
        """Append a range item (or a milestone at ``start``) to a task row.

        Returns None without touching the document when the row is missing or is a phase.
        """
        item_type = ItemType(item_type)
        if item_type is ItemType.MILESTONE:
            return self.add_milestone(row_id, start)

        row = self.find_task_row(row_id)
        if row is None:
            return None

        s = clamp_half(to_number(start, MIN_WEEKS), MIN_WEEKS, self.weeks_count)
        e = clamp_half(to_number(end, s), MIN_WEEKS, self.weeks_count)
        item = RANGE_ITEM_TYPES[item_type](start=min(s, e), end=max(s, e))
        row.items.append(item)
        return item

    def add_milestone(self, row_id: str, week: Any) -> Optional[MilestoneItem]:
        row = self.find_task_row(row_id)
        if row is None:
            return None

        item = MilestoneItem(week=_clamp_int(week, MIN_WEEKS, MIN_WEEKS, self.weeks_count))
        row.items.append(item)
        return item

    def remove_item(self, row_id: str, item_id: str) -> bool:
        row = self.find_task_row(row_id)
        if row is None:
            return False
        index = row.item_index(item_id)
        if index < 0:
            return False
        del row.items[index]
        return True

    def swap_rows(self, first: int, second: int) -> bool:
        """Exchange two row positions; invalid indices leave the order untouched."""
        count = len(self.rows)
        if not (0 <= first < count and 0 <= second < count):
            return False
        self.rows[first], self.rows[second] = self.rows[second], self.rows[first]
        return True

    def set_row_height_mode(self, mode: Union[SizingMode, str]):
        self.row_height_mode = SizingMode(mode)

    def set_manual_row_height(self, px: Any) -> int:
        self.row_height_mode = SizingMode.MANUAL
        self.manual_row_height = _clamp_int(px, DEFAULT_MANUAL_ROW_HEIGHT, ROW_HEIGHT_MIN, ROW_HEIGHT_MAX)
        return self.manual_row_height

    def set_bar_height_mode(self, mode: Union[SizingMode, str]):
        self.bar_height_mode = SizingMode(mode)

    def set_manual_bar_height(self, px: Any) -> int:
        self.bar_height_mode = SizingMode.MANUAL
        self.manual_bar_height = _clamp_int(px, DEFAULT_MANUAL_BAR_HEIGHT, BAR_HEIGHT_MIN, BAR_HEIGHT_MAX)
        return self.manual_bar_height

class ExportEnvelope(TimelineBaseModel):
    """The JSON document written by export and read back by import."""

    app: str = Field(description="Name of the application that wrote the file")
    format_version: int = Field(description="Layout version of this envelope")
    exported_at: datetime = Field(description="When the export was taken")
    document: TimelineDocument = Field(alias="model", description="The exported timeline")

# Built once per process so every fallback hands out copies with the same ids.
STARTER_ROWS: List[Row] = [
    TaskRow(label="Ramp and Discovery", items=[DiscoveryItem(start=1, end=2)]),
    TaskRow(label="Sales Cloud", items=[BarItem(start=2, end=5)]),
]

def starter_rows() -> List[Row]:
    """Deep copies of the built-in starter rows."""
    return [row.model_copy(deep=True) for row in STARTER_ROWS]

def starter_document(weeks_count: int = DEFAULT_WEEKS) -> TimelineDocument:
    document = TimelineDocument(rows=starter_rows())
    if weeks_count != document.weeks_count:
        document.set_weeks_count(weeks_count)
    return document
