"""Service monitoring: availability statistics, latency and SSL alerts."""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from nezhadash.notification import MuteLabel, NotificationCenter
from nezhadash.servers import ServerRegistry

logger = logging.getLogger(__name__)

TASK_TYPE_HTTP_GET = 1
TASK_TYPE_ICMP_PING = 2
TASK_TYPE_TCP_PING = 3

CURRENT_STATUS_SIZE = 30
MONTH_DAYS = 30
DEFAULT_AVG_PING_COUNT = 2
DEFAULT_MAX_TCP_PING_VALUE = 1000

SSL_ERROR_PREFIX = "SSL证书错误："
_SSL_NETWORK_SUFFIXES = ("timeout", "EOF", "timed out")
_SAMPLE_INTERVAL = timedelta(seconds=30)
_EXPIRY_WARNING = timedelta(days=7)
_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

Dispatcher = Callable[[Sequence[int], int], None]


class StatusCode(enum.IntEnum):
    NO_DATA = 1
    GOOD = 2
    LOW_AVAILABILITY = 3
    DOWN = 4

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    StatusCode.NO_DATA: "No Data",
    StatusCode.GOOD: "Good",
    StatusCode.LOW_AVAILABILITY: "Low Availability",
    StatusCode.DOWN: "Down",
}


def get_status_code(percent: float) -> StatusCode:
    """Classify an availability percentage."""
    if percent == 0:
        return StatusCode.NO_DATA
    if percent > 95:
        return StatusCode.GOOD
    if percent > 80:
        return StatusCode.LOW_AVAILABILITY
    return StatusCode.DOWN


@dataclass
class Monitor:
    id: int
    name: str = ""
    type: int = TASK_TYPE_HTTP_GET
    notify: bool = False
    notification_tag: str = "default"
    latency_notify: bool = False
    min_latency: float = 0.0
    max_latency: float = 0.0
    enable_trigger_task: bool = False
    fail_trigger_tasks: list[int] = field(default_factory=list)
    recover_trigger_tasks: list[int] = field(default_factory=list)


@dataclass
class TaskResult:
    id: int
    type: int = TASK_TYPE_HTTP_GET
    delay: float = 0.0
    data: str = ""
    successful: bool = False


@dataclass
class ServiceItem:
    """Thirty days of availability for one monitor; index 29 is today."""

    monitor: Monitor
    delay: list[float] = field(default_factory=lambda: [0.0] * MONTH_DAYS)
    up: list[int] = field(default_factory=lambda: [0] * MONTH_DAYS)
    down: list[int] = field(default_factory=lambda: [0] * MONTH_DAYS)
    total_up: int = 0
    total_down: int = 0
    current_up: int = 0
    current_down: int = 0


@dataclass
class _TodayStats:
    up: int = 0
    down: int = 0
    delay: float = 0.0


@dataclass
class _Cursor:
    at: datetime
    index: int = 0


@dataclass
class _PingStore:
    count: int = 0
    ping: float = 0.0


@dataclass
class _HistoryRecord:
    monitor_id: int
    avg_delay: float
    data: str
    server_id: int = 0
    up: int = 0
    down: int = 0
    created_at: datetime | None = None


def _parse_expiry(text: str) -> datetime:
    parts = text.split(" ")
    try:
        return datetime.strptime(" ".join(parts[:3]), f"{_TIME_FORMAT} %z")
    except ValueError:
        return _ZERO_TIME


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.astimezone()


class ServiceSentinel:
    """Aggregates service check results and raises notifications.

    ``dispatch(task_ids, server_id)`` is called to run trigger tasks when a
    service fails or recovers. Persisted averages are appended to
    ``histories``.
    """

    def __init__(
        self,
        notifications: NotificationCenter,
        registry: ServerRegistry,
        dispatch: Dispatcher | None = None,
    ):
        self.notifications = notifications
        self.registry = registry
        self.dispatch = dispatch
        self.clock: Callable[[], datetime] = datetime.now
        self.avg_ping_count = DEFAULT_AVG_PING_COUNT
        self.max_tcp_ping_value = DEFAULT_MAX_TCP_PING_VALUE
        self.histories: list[_HistoryRecord] = []
        self._lock = threading.RLock()
        self._monitors: dict[int, Monitor] = {}
        self._monthly: dict[int, ServiceItem] = {}
        self._today: dict[int, _TodayStats] = {}
        self._cursor: dict[int, _Cursor] = {}
        self._current_data: dict[int, list[TaskResult | None]] = {}
        self._current_up: dict[int, int] = {}
        self._current_down: dict[int, int] = {}
        self._current_avg_delay: dict[int, float] = {}
        self._pings: dict[int, dict[int, _PingStore]] = {}
        self._last_status: dict[int, StatusCode] = {}
        self._ssl_cache: dict[int, str] = {}

    def monitors(self) -> list[Monitor]:
        with self._lock:
            return sorted(self._monitors.values(), key=lambda m: m.id)

    def on_monitor_update(self, monitor: Monitor) -> None:
        with self._lock:
            if monitor.id not in self._monitors:
                self._monthly[monitor.id] = ServiceItem(monitor=monitor)
                self._current_data[monitor.id] = [None] * CURRENT_STATUS_SIZE
                self._today[monitor.id] = _TodayStats()
            self._monitors[monitor.id] = monitor

    def on_monitor_delete(self, monitor_id: int) -> None:
        with self._lock:
            if monitor_id not in self._monitors:
                raise KeyError(monitor_id)
            for store in (
                self._cursor,
                self._current_data,
                self._last_status,
                self._current_up,
                self._current_down,
                self._current_avg_delay,
                self._ssl_cache,
                self._today,
                self._monitors,
                self._monthly,
            ):
                store.pop(monitor_id, None)

    def load_stats(self) -> dict[int, ServiceItem]:
        """Fold today's counts into the 30-day view and return it."""
        with self._lock:
            for monitor_id, monitor in self._monitors.items():
                item = self._monthly[monitor_id]
                item.monitor = monitor
                today = self._today[monitor_id]
                # Drop what was added last time so today is not counted twice.
                item.total_up += today.up - item.up[-1]
                item.total_down += today.down - item.down[-1]
                item.up[-1] = today.up
                item.down[-1] = today.down
                item.delay[-1] = today.delay
            for monitor_id, value in self._current_down.items():
                self._monthly[monitor_id].current_down = value
            for monitor_id, value in self._current_up.items():
                self._monthly[monitor_id].current_up = value
            return dict(self._monthly)

    def refresh_monthly_status(self) -> None:
        """Move the 30-day window forward by one day."""
        self.load_stats()
        with self._lock:
            for monitor_id, item in self._monthly.items():
                item.total_down -= item.down[0]
                item.total_up -= item.up[0]
                item.up = item.up[1:] + [0]
                item.down = item.down[1:] + [0]
                item.delay = item.delay[1:] + [0.0]
                self._current_up[monitor_id] = 0
                self._current_down[monitor_id] = 0
                self._current_avg_delay[monitor_id] = 0.0
                self._today[monitor_id] = _TodayStats()

    def report(self, result: TaskResult, reporter: int) -> None:
        """Process one check result sent by the server ``reporter``."""
        with self._lock:
            monitor = self._monitors.get(result.id)
            if monitor is None or monitor.id == 0:
                logger.warning("unexpected service report %r from %s", result, reporter)
                return
            if result.type in (TASK_TYPE_TCP_PING, TASK_TYPE_ICMP_PING):
                self._record_ping(result, reporter)
            now = self.clock()
            self._update_today(result)
            state = self._update_current(result, now)
            self._check_latency(monitor, result, reporter)
            self._check_state(monitor, result, reporter, state)
            self._check_ssl(monitor, result)

    def _record_ping(self, result: TaskResult, reporter: int) -> None:
        store = self._pings.setdefault(result.id, {}).setdefault(reporter, _PingStore())
        store.count += 1
        store.ping = (store.ping * (store.count - 1) + result.delay) / store.count
        if store.count == self.avg_ping_count:
            store.ping = min(store.ping, float(self.max_tcp_ping_value))
            store.count = 0
            self.histories.append(
                _HistoryRecord(
                    monitor_id=result.id,
                    avg_delay=store.ping,
                    data=result.data,
                    server_id=reporter,
                    created_at=self.clock(),
                )
            )

    def _update_today(self, result: TaskResult) -> None:
        today = self._today[result.id]
        if result.successful:
            today.delay = (today.delay * today.up + result.delay) / (today.up + 1)
            today.up += 1
        else:
            today.down += 1

    def _update_current(self, result: TaskResult, now: datetime) -> StatusCode:
        monitor_id = result.id
        cursor = self._cursor.setdefault(monitor_id, _Cursor(at=now))
        if cursor.at < now:
            cursor.at = now + _SAMPLE_INTERVAL
            self._current_data[monitor_id][cursor.index] = result
            cursor.index += 1

        up = down = 0
        avg = 0.0
        for item in self._current_data[monitor_id]:
            if item is None or item.id <= 0:
                continue
            if item.successful:
                up += 1
                avg = (avg * (up - 1) + item.delay) / up
            else:
                down += 1
        self._current_up[monitor_id] = up
        self._current_down[monitor_id] = down
        self._current_avg_delay[monitor_id] = avg

        percent = up * 100 // (up + down) if up + down else 0
        if cursor.index == CURRENT_STATUS_SIZE:
            self._cursor[monitor_id] = _Cursor(at=now)
            self.histories.append(
                _HistoryRecord(
                    monitor_id=monitor_id,
                    avg_delay=avg,
                    data=result.data,
                    up=up,
                    down=down,
                    created_at=now,
                )
            )
        return get_status_code(percent)

    def _reporter_name(self, reporter: int) -> str:
        with self.registry.lock:
            server = self.registry.servers.get(reporter)
            return server.name if server is not None else ""

    def _check_latency(self, monitor: Monitor, result: TaskResult, reporter: int) -> None:
        if result.delay <= 0 or not monitor.latency_notify:
            return
        tag = monitor.notification_tag
        min_label = MuteLabel.service_latency_min(monitor.id)
        max_label = MuteLabel.service_latency_max(monitor.id)
        if result.delay > monitor.max_latency:
            message = (
                f"[Latency] {monitor.name} {result.delay:2f} > {monitor.max_latency:2f}, "
                f"Reporter: {self._reporter_name(reporter)}"
            )
            self.notifications.send(tag, message, min_label)
        elif result.delay < monitor.min_latency:
            message = (
                f"[Latency] {monitor.name} {result.delay:2f} < {monitor.min_latency:2f}, "
                f"Reporter: {self._reporter_name(reporter)}"
            )
            self.notifications.send(tag, message, max_label)
        else:
            self.notifications.unmute(tag, min_label)
            self.notifications.unmute(tag, max_label)

    def _check_state(
        self, monitor: Monitor, result: TaskResult, reporter: int, state: StatusCode
    ) -> None:
        last = self._last_status.get(monitor.id, 0)
        if state != StatusCode.DOWN and state == last:
            return
        self._last_status[monitor.id] = state

        if monitor.notify and (last != 0 or state == StatusCode.DOWN):
            tag = monitor.notification_tag
            message = (
                f"[{state.label}] {monitor.name} Reporter: {self._reporter_name(reporter)}, "
                f"Error: {result.data}"
            )
            label = MuteLabel.service_state_changed(monitor.id)
            if state != last:
                self.notifications.unmute(tag, label)
            self.notifications.send(tag, message, label)

        if monitor.enable_trigger_task and last != 0 and self.dispatch is not None:
            if state == StatusCode.GOOD and last != state:
                self.dispatch(list(monitor.recover_trigger_tasks), reporter)
            elif last == StatusCode.GOOD and last != state:
                self.dispatch(list(monitor.fail_trigger_tasks), reporter)

    def _check_ssl(self, monitor: Monitor, result: TaskResult) -> None:
        tag = monitor.notification_tag
        network_label = MuteLabel.service_ssl(monitor.id, "network")
        if result.data.startswith(SSL_ERROR_PREFIX):
            if result.data.endswith(_SSL_NETWORK_SUFFIXES):
                return
            if monitor.notify:
                self.notifications.send(
                    tag,
                    f"[SSL] Fetch cert info failed, {monitor.name} {result.data}",
                    network_label,
                )
            return

        self.notifications.unmute(tag, network_label)
        new_cert = result.data.split("|")
        if len(new_cert) < 2:
            return
        cached = self._ssl_cache.setdefault(monitor.id, result.data) or result.data
        old_cert = cached.split("|")
        expires_old = _parse_expiry(old_cert[1])
        expires_new = _parse_expiry(new_cert[1])
        changed = old_cert[0] != new_cert[0] and expires_new != expires_old
        if changed:
            self._ssl_cache[monitor.id] = result.data
        if not monitor.notify:
            return

        if expires_new < _aware(self.clock()) + _EXPIRY_WARNING:
            expires_text = expires_new.strftime(_TIME_FORMAT)
            message = (
                "The SSL certificate will expire within seven days. "
                f"Expiration time: {expires_text}"
            )
            # One label per expiry time so several reporters do not repeat it.
            label = MuteLabel.service_ssl(monitor.id, f"expire_{expires_text}")
            self.notifications.send(tag, f"[SSL] {monitor.name} {message}", label)

        if changed:
            message = (
                f"SSL certificate changed, old: {old_cert[0]}, "
                f"{expires_old.strftime(_TIME_FORMAT)} expired; new: {new_cert[0]}, "
                f"{expires_new.strftime(_TIME_FORMAT)} expired."
            )
            self.notifications.send(tag, f"[SSL] {monitor.name} {message}", None)