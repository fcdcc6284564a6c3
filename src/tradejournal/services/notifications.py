"""User-visible, dismissible notifications raised by mutations."""

import itertools
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    id: int
    level: NotificationLevel
    title: str
    message: Optional[str] = None


NotificationListener = Callable[[list[Notification]], None]


class Notifier:
    """Holds the notifications currently shown to the user."""

    def __init__(self):
        self._ids = itertools.count(1)
        self._active: list[Notification] = []
        self._history: list[Notification] = []
        self._listeners: list[NotificationListener] = []

    @property
    def active(self) -> list[Notification]:
        """Notifications not yet dismissed, oldest first."""
        return list(self._active)

    @property
    def history(self) -> list[Notification]:
        """Every notification raised, dismissed or not."""
        return list(self._history)

    def notify(
        self,
        level: NotificationLevel,
        title: str,
        message: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            id=next(self._ids), level=level, title=title, message=message
        )
        self._active.append(notification)
        self._history.append(notification)
        logger.debug(f"Notification [{level.value}] {title}")
        self._emit()
        return notification

    def success(self, title: str, message: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.SUCCESS, title, message)

    def error(self, title: str, message: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.ERROR, title, message)

    def info(self, title: str, message: Optional[str] = None) -> Notification:
        return self.notify(NotificationLevel.INFO, title, message)

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification; returns False if it was already gone."""
        for notification in self._active:
            if notification.id == notification_id:
                self._active.remove(notification)
                self._emit()
                return True
        return False

    def clear(self) -> None:
        if self._active:
            self._active.clear()
            self._emit()

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self) -> None:
        active = self.active
        for listener in list(self._listeners):
            listener(active)
