"""In-process change feed for document collections.

Every write made through the document store publishes a ``ChangeEvent``.
Subscribers register per collection, optionally narrowed to one document.
Views that need to stay live use ``watch_collection``, which ignores the event
payload and simply reloads the whole query on every notification.
"""

import asyncio
import enum
import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


class ChangeType(str, enum.Enum):
    """Kind of document change."""

    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class ChangeEvent:
    collection: str
    document_id: str
    change_type: ChangeType
    document: dict[str, Any] | None = field(default=None, compare=False)


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]


class ChangeFeed:
    """Collection-scoped publish/subscribe hub."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[tuple[str | None, ChangeCallback]]] = defaultdict(list)

    def subscribe(
        self,
        collection: str,
        callback: ChangeCallback,
        document_id: str | None = None,
    ) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        entry = (document_id, callback)
        self._subscribers[collection].append(entry)

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(collection, [])
            if entry in subscribers:
                subscribers.remove(entry)

        return unsubscribe

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscribers.get(collection, []))

    async def publish(self, event: ChangeEvent) -> None:
        """Deliver an event to matching subscribers.

        A failing subscriber is logged and does not stop delivery to the rest.
        """
        for document_id, callback in list(self._subscribers.get(event.collection, [])):
            if document_id is not None and document_id != event.document_id:
                continue
            try:
                outcome = callback(event)
                if inspect.isawaitable(outcome):
                    await outcome
            except Exception:
                logger.exception(
                    f"Change subscriber failed for {event.collection}/{event.document_id}"
                )


def watch_collection(
    subscribe: Callable[..., Callable[[], None]],
    collection: str,
    reload: Callable[[], Awaitable[None]],
    document_id: str | None = None,
) -> Callable[[], None]:
    """Invalidate-and-reload watcher.

    ``reload`` runs in the background after a change to the collection (or
    document). Reloads never overlap; events arriving while one is running
    collapse into a single follow-up reload. Returns a stop function.
    """
    state: dict[str, Any] = {"task": None, "dirty": False}

    async def run() -> None:
        try:
            while True:
                state["dirty"] = False
                await reload()
                if not state["dirty"]:
                    break
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Reload failed for watched collection {collection}")
        finally:
            state["task"] = None

    def on_change(event: ChangeEvent) -> None:
        if state["task"] is not None:
            state["dirty"] = True
            return
        state["task"] = asyncio.get_running_loop().create_task(run())

    unsubscribe = subscribe(collection, on_change, document_id=document_id)

    def stop() -> None:
        unsubscribe()
        if state["task"] is not None:
            state["task"].cancel()

    return stop
