from collections import defaultdict, deque
import logging
from typing import Callable, DefaultDict, Deque, List, Optional, Type


EventHandler = Callable[[object], None]

DEFAULT_HISTORY_LIMIT = 100


class EventBus:
    """Synchronous publish/subscribe for rules events.

    A handler subscribed to a class also receives events of its subclasses, so
    subscribing to ``RulesEvent`` observes every service. Matching handlers run
    in ascending ``priority`` then subscription order. A failing handler is
    logged and recorded; later handlers still run. The most recent events are
    kept in a bounded journal for inspection.
    """

    def __init__(self, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        if int(history_limit) < 0:
            raise ValueError("history_limit cannot be negative")
        self._subscribers: DefaultDict[Type[object], List[tuple[int, int, EventHandler]]] = defaultdict(list)
        self._next_order = 0
        self._last_publish_errors: List[Exception] = []
        self._journal: Deque[object] = deque(maxlen=int(history_limit))
        self._published_count = 0
        self._logger = logging.getLogger(__name__)

    def subscribe(self, event_type: Type[object], handler: EventHandler, *, priority: int = 100) -> None:
        self._subscribers[event_type].append((int(priority), self._next_order, handler))
        self._next_order += 1

    def unsubscribe(self, event_type: Type[object], handler: EventHandler) -> bool:
        rows = self._subscribers.get(event_type, [])
        kept = [row for row in rows if row[2] is not handler]
        if kept:
            self._subscribers[event_type] = kept
        else:
            self._subscribers.pop(event_type, None)
        return len(kept) != len(rows)

    def handlers_for(self, event_type: Type[object]) -> List[EventHandler]:
        rows = [row for cls in event_type.__mro__ for row in self._subscribers.get(cls, ())]
        rows.sort(key=lambda row: (row[0], row[1]))
        return [row[2] for row in rows]

    def publish(self, event: object) -> None:
        self._last_publish_errors = []
        self._published_count += 1
        self._journal.append(event)
        event_type = type(event)
        for handler in self.handlers_for(event_type):
            try:
                handler(event)
            except Exception as exc:
                self._last_publish_errors.append(exc)
                handler_name = getattr(handler, "__qualname__", getattr(handler, "__name__", repr(handler)))
                self._logger.exception(
                    "Rules event handler %s failed on %s; continuing",
                    handler_name,
                    event_type.__name__,
                    extra={"event_type": event_type.__name__, "handler": handler_name},
                )

    def recent_events(self, event_type: Optional[Type[object]] = None) -> List[object]:
        if event_type is None:
            return list(self._journal)
        return [event for event in self._journal if isinstance(event, event_type)]

    def last_publish_errors(self) -> List[Exception]:
        return list(self._last_publish_errors)

    @property
    def published_count(self) -> int:
        return self._published_count
