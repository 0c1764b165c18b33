"""
Action dispatcher: single-record status changes with a write-confirmed local patch.

Flow for every action:

1. Look the record up in the owning view's set (unknown ids fail before any write).
2. Issue exactly one ``DataStore.update`` for that record.
3. Only after the update succeeds, shallow-merge the same fields into the
   view's in-memory copy. A failed update leaves the set untouched.
4. Optionally emit a notification document. Its failure is logged and
   reported on the result; it never raises and never reverts step 3.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple

from magnate.datastore.abstract import DataStore, Identity
from magnate.domain.models import CurrentUser, Record, resolve_field
from magnate.domain.timestamps import utc_now_iso
from magnate.errors import ActionError, SecondaryWriteError
from magnate.utils.logging import get_logger

log = get_logger(__name__)

# Named user actions and the status each one writes.
ACTION_STATUSES: Mapping[str, str] = {
    "approve": "approved",
    "reject": "rejected",
    "revoke": "revoked",
    "request_changes": "changes_requested",
    "complete": "completed",
    "start": "in_progress",
    "pause": "pending",
}
FEEDBACK_ACTION = "submit_feedback"


def available_actions() -> list[str]:
    return sorted([*ACTION_STATUSES, FEEDBACK_ACTION])


class RecordSet:
    """
    The in-memory record snapshot owned by exactly one view.

    Holds an immutable tuple; a patch swaps in a new tuple where only the
    affected record is replaced by a merged copy. ``version`` increases on
    every change so derived counters know when to recompute.
    """

    def __init__(self, records: Iterable[Dict[str, Any]] = ()) -> None:
        self._records: Tuple[Dict[str, Any], ...] = tuple(records)
        self.version = 0

    @property
    def records(self) -> Tuple[Dict[str, Any], ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def replace_all(self, records: Iterable[Dict[str, Any]]) -> None:
        self._records = tuple(records)
        self.version += 1

    def find(self, record_id: str) -> Optional[Dict[str, Any]]:
        for record in self._records:
            if record.get("id") == record_id:
                return record
        return None

    def patch(self, record_id: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Shallow-merge ``fields`` into one record and return the merged copy."""
        merged: Optional[Dict[str, Any]] = None
        updated = []
        for record in self._records:
            if merged is None and record.get("id") == record_id:
                merged = {**record, **fields}
                updated.append(merged)
            else:
                updated.append(record)
        if merged is None:
            raise KeyError(record_id)
        self._records = tuple(updated)
        self.version += 1
        return merged


NotificationBuilder = Callable[
    [Record, Record, Optional[CurrentUser]], Optional[Mapping[str, Any]]
]


@dataclass(frozen=True)
class NotificationSpec:
    """Where and what to write after a successful action."""

    collection: str
    build: NotificationBuilder


@dataclass(frozen=True)
class ActionResult:
    record: Dict[str, Any]
    previous: Dict[str, Any]
    notification_id: Optional[str] = None
    notification_error: Optional[SecondaryWriteError] = None


def status_change_notification(
    collection: str,
    recipient_field: str,
    title_field: str = "title",
) -> NotificationSpec:
    """
    Notification announcing a status change to the record's owner.

    Status and title come from the patched record; ``previousStatus`` from the
    record as it was before the action. Records without a recipient produce
    no notification.
    """

    def _build(
        before: Record, after: Record, actor: Optional[CurrentUser]
    ) -> Optional[Dict[str, Any]]:
        recipient = resolve_field(after, recipient_field)
        if not recipient:
            return None
        title = resolve_field(after, title_field) or after.get("id")
        status = after.get("status")
        return {
            "userId": recipient,
            "type": "status_change",
            "recordId": after.get("id"),
            "status": status,
            "previousStatus": before.get("status"),
            "message": f"{title} was marked {str(status).replace('_', ' ')}",
            "timestamp": utc_now_iso(),
            "read": False,
            "senderId": actor.id if actor else None,
            "senderName": actor.label if actor else None,
        }

    return NotificationSpec(collection=collection, build=_build)


class ActionDispatcher:
    """
    Applies user actions to records of one collection for one view.
    """

    def __init__(
        self,
        store: DataStore,
        collection: str,
        records: RecordSet,
        identity: Optional[Identity] = None,
        notification: Optional[NotificationSpec] = None,
        clock: Callable[[], str] = utc_now_iso,
    ) -> None:
        self.store = store
        self.collection = collection
        self.records = records
        self.identity = identity
        self.notification = notification
        self._clock = clock

    def _actor(self) -> Optional[CurrentUser]:
        return self.identity.current_user() if self.identity is not None else None

    async def apply_action(
        self,
        record_id: str,
        new_status: Optional[str],
        extra_fields: Optional[Mapping[str, Any]] = None,
        notify: bool = True,
    ) -> ActionResult:
        """
        Write ``new_status`` (plus ``extra_fields`` and ``updatedAt``) to one record.

        A ``new_status`` of None leaves the stored status alone.

        Raises
        ------
        ActionError
            If the record is not part of this view or the remote update fails.
            The in-memory set is unchanged in both cases.
        """
        previous = self.records.find(record_id)
        if previous is None:
            raise ActionError(record_id, message=f"Record '{record_id}' is not in this view")

        fields: Dict[str, Any] = {"updatedAt": self._clock(), **(extra_fields or {})}
        if new_status is not None:
            fields["status"] = new_status
        try:
            await self.store.update(self.collection, record_id, fields)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - surfaced to the caller as ActionError
            log.exception(
                f"[ACTION FAILED] {self.collection}/{record_id}",
                extra={"collection": self.collection, "record_id": record_id, "status": new_status},
            )
            raise ActionError(record_id, exc) from exc

        try:
            updated = self.records.patch(record_id, fields)
        except KeyError:
            # A reload replaced the set while the write was in flight.
            updated = {**previous, **fields}
            log.info(
                f"[ACTION] {self.collection}/{record_id} no longer in view; patch skipped",
                extra={"collection": self.collection, "record_id": record_id},
            )
        log.info(
            f"[ACTION] {self.collection}/{record_id} -> {new_status}",
            extra={
                "collection": self.collection,
                "record_id": record_id,
                "status": new_status,
                "previous_status": previous.get("status"),
            },
        )

        notification_id: Optional[str] = None
        notification_error: Optional[SecondaryWriteError] = None
        if notify and self.notification is not None:
            notification_id, notification_error = await self._notify(
                self.notification, previous, updated
            )

        return ActionResult(
            record=updated,
            previous=previous,
            notification_id=notification_id,
            notification_error=notification_error,
        )

    async def _notify(
        self, notice: NotificationSpec, previous: Record, updated: Record
    ) -> Tuple[Optional[str], Optional[SecondaryWriteError]]:
        try:
            document = notice.build(previous, updated, self._actor())
            if document is None:
                return None, None
            notification_id = await self.store.create(notice.collection, document)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001 - best-effort side write
            error = SecondaryWriteError(notice.collection, exc)
            log.warning(
                f"[NOTIFICATION FAILED] {notice.collection}",
                extra={"collection": notice.collection, "record_id": updated.get("id"), "error": str(exc)},
            )
            return None, error
        return notification_id, None

    async def dispatch(
        self,
        record_id: str,
        action: str,
        feedback: Optional[str] = None,
        rating: Optional[int] = None,
        extra_fields: Optional[Mapping[str, Any]] = None,
    ) -> ActionResult:
        """
        Apply a named action (``approve``, ``reject``, ``revoke``, ...).

        ``submit_feedback`` keeps the current status and stores the feedback
        text and optional 1-5 rating. For other actions a feedback text is
        stored alongside the new status.
        """
        extra: Dict[str, Any] = dict(extra_fields or {})
        if feedback:
            extra["feedback"] = feedback

        if action == FEEDBACK_ACTION:
            if not feedback and rating is None and not extra:
                raise ValueError("submit_feedback needs feedback text, a rating or extra fields")
            if rating is not None:
                if not 1 <= rating <= 5:
                    raise ValueError(f"rating must be between 1 and 5, got {rating}")
                extra["rating"] = rating
            return await self.apply_action(record_id, None, extra)

        if action not in ACTION_STATUSES:
            raise ValueError(f"Unknown action '{action}'. Available: {', '.join(available_actions())}")
        return await self.apply_action(record_id, ACTION_STATUSES[action], extra)


__all__ = [
    "ACTION_STATUSES",
    "FEEDBACK_ACTION",
    "ActionDispatcher",
    "ActionResult",
    "NotificationSpec",
    "RecordSet",
    "available_actions",
    "status_change_notification",
]
