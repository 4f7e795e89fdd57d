"""
Keeps one role-scoped view in step with the change feed and turns each burst
of employee events into at most one user notification.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from app.services.change_feed import DELETE, EMPLOYEES_TABLE, IMPORTANT_DATES_TABLE, ChangeEvent
from app.services.view_composer import CustomData, RowProjection, ViewFilters, compose_view

logger = logging.getLogger(__name__)

ADDED = "added"
UPDATED = "updated"
REMOVED = "removed"

# Fields reported as "(X changed)" in single-update messages, in priority order
CHANGED_FIELD_LABELS = (
    ("first_name", "First Name"),
    ("surname", "Surname"),
    ("email", "Email"),
    ("mobile", "Mobile"),
    ("rank", "Rank"),
    ("hire_date", "Hire Date"),
    ("termination_date", "Termination Date"),
    ("is_terminated", "Termination Status"),
    ("is_archived", "Archive Status"),
)


@dataclass
class ViewChange:
    kind: str
    employee_id: str
    employee_name: str
    changed_field: Optional[str] = None


@dataclass
class NotificationBatch:
    changes: List[ViewChange]
    message: str
    rows: List[RowProjection] = field(default_factory=list)
    important_dates_changed: bool = False

    def ids(self, kind: str) -> List[str]:
        return [c.employee_id for c in self.changes if c.kind == kind]

    @property
    def added(self) -> List[str]:
        return self.ids(ADDED)

    @property
    def updated(self) -> List[str]:
        return self.ids(UPDATED)

    @property
    def removed(self) -> List[str]:
        return self.ids(REMOVED)


def changed_field(old: Optional[Dict[str, Any]], new: Optional[Dict[str, Any]]) -> Optional[str]:
    if not old or not new:
        return None
    for key, label in CHANGED_FIELD_LABELS:
        if old.get(key) != new.get(key):
            return label
    return None


def format_notification(change: ViewChange) -> str:
    if change.kind == ADDED:
        return f"1 new employee matches your filters: {change.employee_name}"
    if change.kind == REMOVED:
        return f"1 employee no longer matches your filters: {change.employee_name}"
    if change.changed_field:
        return f"Employee {change.employee_name} was updated ({change.changed_field} changed)"
    return f"Employee {change.employee_name} was updated"


def format_batched_notification(changes: List[ViewChange]) -> str:
    """One line for the whole burst. Additions outrank removals, which outrank updates."""
    if not changes:
        return ""
    if len(changes) == 1:
        return format_notification(changes[0])
    counts = {ADDED: 0, REMOVED: 0, UPDATED: 0}
    for change in changes:
        counts[change.kind] += 1
    if counts[ADDED]:
        n = counts[ADDED]
        return f"{n} new employee{'s' if n > 1 else ''} match your filters"
    if counts[REMOVED]:
        n = counts[REMOVED]
        return f"{n} employee{'s' if n > 1 else ''} no longer match your filters"
    n = counts[UPDATED]
    return f"{n} employee{'s were' if n > 1 else ' was'} updated"


def _employee_name(record: Dict[str, Any]) -> str:
    return " ".join(p for p in (record.get("first_name"), record.get("surname")) if p) or "Unknown"


class ChangeNotifier:
    """
    Holds a snapshot of employee records plus the rows currently visible to
    one role under one filter set. process() applies a burst of events and
    classifies each touched id against the visible set before and after.
    """

    def __init__(
        self,
        columns: Iterable[Any],
        role,
        filters: Optional[ViewFilters] = None,
        custom_data: Optional[CustomData] = None,
        employees: Iterable[Any] = (),
    ):
        self.columns = list(columns)
        self.role = role
        self.filters = filters or ViewFilters()
        self.custom_data = custom_data or {}
        self._records: Dict[str, Any] = {str(_get_id(e)): e for e in employees}
        self._visible = self._compose()

    def _compose(self) -> Dict[str, RowProjection]:
        rows = compose_view(self._records.values(), self.columns, self.role, self.filters, self.custom_data)
        return {str(r.id): r for r in rows}

    @property
    def rows(self) -> List[RowProjection]:
        return list(self._visible.values())

    @property
    def visible_ids(self) -> List[str]:
        return list(self._visible.keys())

    def process(self, events: Iterable[ChangeEvent]) -> Optional[NotificationBatch]:
        touched: Dict[str, ChangeEvent] = {}
        olds: Dict[str, Optional[Dict[str, Any]]] = {}
        dates_changed = False
        for change in events:
            if change.table == IMPORTANT_DATES_TABLE:
                dates_changed = True
                continue
            if change.table != EMPLOYEES_TABLE:
                continue
            previous = self._records.get(change.record_id)
            olds.setdefault(change.record_id, _as_dict(previous) if previous is not None else change.old)
            if change.event_type == DELETE:
                self._records.pop(change.record_id, None)
            else:
                self._records[change.record_id] = dict(change.new or {})
            touched[change.record_id] = change

        if not touched and not dates_changed:
            return None

        before = self._visible
        self._visible = self._compose()

        changes: List[ViewChange] = []
        for record_id, change in touched.items():
            was_visible = record_id in before
            is_visible = record_id in self._visible
            record = change.new or change.old or {}
            name = _employee_name(record)
            if is_visible and not was_visible:
                changes.append(ViewChange(ADDED, record_id, name))
            elif was_visible and not is_visible:
                changes.append(ViewChange(REMOVED, record_id, name))
            elif was_visible and is_visible:
                changes.append(ViewChange(UPDATED, record_id, name, changed_field(olds.get(record_id), change.new)))
            # neither: the row is outside this view, nothing to say

        if not changes and not dates_changed:
            return None
        message = format_batched_notification(changes) if changes else "Important dates were updated"
        logger.debug("View change batch for %s: %s", self.role, message)
        return NotificationBatch(
            changes=changes,
            message=message,
            rows=self.rows,
            important_dates_changed=dates_changed,
        )


def _get_id(record: Any) -> Any:
    return record.get("id") if isinstance(record, dict) else getattr(record, "id")


def _as_dict(record: Any) -> Dict[str, Any]:
    if isinstance(record, dict):
        return record
    return {key: getattr(record, key, None) for key, _ in CHANGED_FIELD_LABELS}
