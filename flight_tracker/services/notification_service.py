import json
import logging
import uuid
from dataclasses import asdict, dataclass
from pathlib import Path
from time import time

from flight_tracker.models import Notification

LOGGER = logging.getLogger("flight_tracker.notifications")


@dataclass(frozen=True)
class NotificationPolicy:
    show_alert: bool = True
    play_sound: bool = True
    set_badge: bool = True

    @classmethod
    def from_settings(cls, settings):
        return cls(
            show_alert=bool(settings.notify_show_alert),
            play_sound=bool(settings.notify_play_sound),
            set_badge=bool(settings.notify_set_badge),
        )


class NotificationStore:
    """JSON list of notifications on disk, newest first."""

    def __init__(self, path):
        self.path = Path(path).expanduser()

    def load(self) -> list:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Unable to read notifications from %s (%s); starting empty.", self.path, exc)
            return []
        if not isinstance(raw, list):
            LOGGER.warning("Notification store %s is not a list; starting empty.", self.path)
            return []
        return [Notification.from_dict(item) for item in raw if isinstance(item, dict) and item.get("id")]

    def save(self, notifications: list) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [asdict(notification) for notification in notifications]
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class NotificationService:
    def __init__(self, store: NotificationStore, policy: NotificationPolicy | None = None, deliver_fn=None, id_fn=None, clock_fn=None):
        self.store = store
        self.policy = policy or NotificationPolicy()
        self.deliver_fn = deliver_fn or self._log_delivery
        self.id_fn = id_fn or (lambda: uuid.uuid4().hex)
        self.clock_fn = clock_fn or time

    def _log_delivery(self, notification: Notification) -> None:
        level = logging.INFO if self.policy.show_alert else logging.DEBUG
        sound = " [sound]" if self.policy.play_sound else ""
        LOGGER.log(level, "Notification%s: %s - %s", sound, notification.title, notification.message)

    def send_local(self, title: str, message: str, flight_id: str | None = None) -> str:
        notification = Notification(
            id=self.id_fn(),
            title=title,
            message=message,
            timestamp=int(self.clock_fn() * 1000),
            read=False,
            flight_id=flight_id,
        )
        self.deliver_fn(notification)
        notifications = self.store.load()
        notifications.insert(0, notification)
        self.store.save(notifications)
        if self.policy.set_badge:
            self.update_badge(notifications)
        return notification.id

    def update_badge(self, notifications: list | None = None) -> int:
        """Log the unread count, the headless stand-in for an app icon badge."""
        if notifications is None:
            notifications = self.store.load()
        unread = sum(1 for notification in notifications if not notification.read)
        LOGGER.info("Unread notifications: %s", unread)
        return unread

    def list_notifications(self) -> list:
        return self.store.load()

    def unread_count(self) -> int:
        return sum(1 for notification in self.store.load() if not notification.read)

    def mark_read(self, notification_id: str) -> bool:
        notifications = self.store.load()
        found = False
        for notification in notifications:
            if notification.id == notification_id:
                notification.read = True
                found = True
        if found:
            self.store.save(notifications)
            if self.policy.set_badge:
                self.update_badge(notifications)
        return found

    def clear(self) -> None:
        self.store.clear()
