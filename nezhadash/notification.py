"""Notification groups with rate-limited, mutable delivery."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from nezhadash.servers import Server

logger = logging.getLogger(__name__)

FIRST_NOTIFICATION_DELAY = timedelta(minutes=15)
MAX_NOTIFICATION_DELAY = timedelta(hours=24)
_CACHE_GRACE = timedelta(minutes=10)
DEFAULT_TAG = "default"


@dataclass
class NotificationHistory:
    duration: timedelta
    until: datetime


Sender = Callable[["Notification", str, Optional[Server]], None]


@dataclass(eq=False)
class Notification:
    id: int
    name: str = ""
    tag: str = ""
    sender: Sender | None = field(default=None, repr=False)


class MuteLabel:
    """Builders for the keys under which repeated notifications are muted."""

    @staticmethod
    def ip_changed(server_id: int) -> str:
        return f"bf::ic-{server_id}"

    @staticmethod
    def server_incident(alert_id: int, server_id: int) -> str:
        return f"bf::sei-{alert_id}-{server_id}"

    @staticmethod
    def server_incident_resolved(alert_id: int, server_id: int) -> str:
        return f"bf::seir-{alert_id}-{server_id}"

    @staticmethod
    def append_notification_tag(label: str, notification_tag: str) -> str:
        return f"{label}:{notification_tag}"

    @staticmethod
    def service_latency_min(service_id: int) -> str:
        return f"bf::sln-{service_id}"

    @staticmethod
    def service_latency_max(service_id: int) -> str:
        return f"bf::slm-{service_id}"

    @staticmethod
    def service_state_changed(service_id: int) -> str:
        return f"bf::ssc-{service_id}"

    @staticmethod
    def service_ssl(service_id: int, extra_info: str) -> str:
        return f"bf::sssl-{service_id}-{extra_info}"


class NotificationCenter:
    """Notification methods grouped by tag, with back-off for repeated messages."""

    def __init__(self, clock: Callable[[], datetime] | None = None):
        self._clock = clock if clock is not None else datetime.now
        self._lock = threading.RLock()
        self._mute_lock = threading.Lock()
        self.notifications: dict[str, dict[int, Notification]] = {}
        self.id_to_tag: dict[int, str] = {}
        self._mute_cache: dict[str, tuple[NotificationHistory, datetime]] = {}

    def load(self, notifications: Iterable[Notification]) -> None:
        """Replace all groups; notifications without a tag join the default group."""
        with self._lock:
            self.notifications = {}
            self.id_to_tag = {}
            for notification in notifications:
                if not notification.tag:
                    notification.tag = DEFAULT_TAG
                self._add(notification)

    def refresh_or_add(self, notification: Notification) -> None:
        with self._lock:
            old_tag = self.id_to_tag.get(notification.id)
            if old_tag is None:
                self._add(notification)
            elif old_tag != notification.tag:
                self.notifications.get(old_tag, {}).pop(notification.id, None)
                del self.id_to_tag[notification.id]
                self._add(notification)
            else:
                self.notifications[notification.tag][notification.id] = notification

    def delete(self, notification_id: int) -> None:
        with self._lock:
            tag = self.id_to_tag.pop(notification_id, None)
            if tag is not None:
                self.notifications.get(tag, {}).pop(notification_id, None)

    def _add(self, notification: Notification) -> None:
        self.notifications.setdefault(notification.tag, {})[notification.id] = notification
        self.id_to_tag[notification.id] = notification.tag

    def unmute(self, notification_tag: str, mute_label: str) -> None:
        full_label = MuteLabel.append_notification_tag(mute_label, notification_tag)
        with self._mute_lock:
            self._mute_cache.pop(full_label, None)

    def _should_send(self, label: str) -> bool:
        now = self._clock()
        with self._mute_lock:
            entry = self._mute_cache.get(label)
            if entry is not None and now > entry[1]:
                del self._mute_cache[label]
                entry = None
            if entry is None:
                history = NotificationHistory(
                    FIRST_NOTIFICATION_DELAY, now + FIRST_NOTIFICATION_DELAY
                )
                self._mute_cache[label] = (history, now + FIRST_NOTIFICATION_DELAY + _CACHE_GRACE)
                return True
            history = entry[0]
            if not now > history.until:
                return False
            # Each repeat doubles the wait, up to once a day.
            duration = min(history.duration * 2, MAX_NOTIFICATION_DELAY)
            renewed = NotificationHistory(duration, now + duration)
            self._mute_cache[label] = (renewed, now + duration + _CACHE_GRACE)
            return True

    def send(
        self,
        notification_tag: str,
        desc: str,
        mute_label: str | None = None,
        server: Server | None = None,
    ) -> bool:
        """Deliver desc to every method of the group; return False if muted."""
        if mute_label is not None:
            full_label = MuteLabel.append_notification_tag(mute_label, notification_tag)
            if not self._should_send(full_label):
                logger.debug("muted repeated notification: %s %s", desc, full_label)
                return False
        with self._lock:
            targets = list(self.notifications.get(notification_tag, {}).values())
        for notification in targets:
            logger.info("trying to notify %s", notification.name)
        for notification in targets:
            if notification.sender is None:
                logger.warning("no sender configured for %s", notification.name)
                continue
            try:
                notification.sender(notification, desc, server)
            except Exception as exc:
                logger.warning("sending notification to %s failed: %s", notification.name, exc)
            else:
                logger.info("sent notification to %s", notification.name)
        return True