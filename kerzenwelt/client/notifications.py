"""User-facing notification surface for the settings access layer."""

import enum
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class Variant(str, enum.Enum):
    """Notification severity."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    """A single advisory message shown to the user."""

    title: str
    description: str
    variant: Variant = Variant.DEFAULT


class Notifier(ABC):
    """Abstract base class for notification sinks.

    Notifications are advisory: :meth:`send` never raises, so a broken sink
    cannot turn a successful write into a failure.
    """

    @abstractmethod
    def notify(self, notification: Notification) -> None:
        """Deliver a notification."""

    def send(
        self,
        title: str,
        description: str,
        variant: Variant = Variant.DEFAULT,
    ) -> None:
        """Build and deliver a notification, logging delivery failures."""
        try:
            self.notify(Notification(title=title, description=description, variant=variant))
        except Exception as e:
            logger.error(f"Failed to deliver notification '{title}': {e}")


class LoggingNotifier(Notifier):
    """Writes notifications to the application log."""

    def notify(self, notification: Notification) -> None:
        if notification.variant is Variant.DESTRUCTIVE:
            logger.error(f"{notification.title}: {notification.description}")
        else:
            logger.info(f"{notification.title}: {notification.description}")


class NotificationLog(Notifier):
    """Keeps notifications in memory, newest last."""

    def __init__(self):
        self.notifications: list[Notification] = []

    def notify(self, notification: Notification) -> None:
        self.notifications.append(notification)

    @property
    def last(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def clear(self) -> None:
        self.notifications.clear()
