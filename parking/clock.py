"""Time sources and the shared recompute ticker."""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, List, Optional, Union

from dateutil import parser as date_parser
from dateutil import tz

logger = logging.getLogger(__name__)

Timestamp = Union[str, datetime, None]

# Calendar days (filters, summaries, display) are garage local days
GARAGE_TZ = tz.gettz("America/Santiago")


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def local_date(moment: datetime) -> date:
    """Calendar day of an instant in garage local time."""
    return moment.astimezone(GARAGE_TZ).date()


def local_today() -> date:
    return local_date(utc_now())


def parse_timestamp(value: Timestamp) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Accepts datetimes (naive ones are taken as UTC) and ISO-8601 strings.
    Returns None for missing or unparseable input instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = date_parser.isoparse(text)
        except (ValueError, OverflowError):
            logger.debug(f"Unparseable timestamp: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class SystemClock:
    """Wall clock."""

    def now(self) -> datetime:
        return utc_now()


class FixedClock:
    """A clock that only moves when told to. Used for tests and replays."""

    def __init__(self, at: Timestamp):
        moment = parse_timestamp(at)
        if moment is None:
            raise ValueError(f"Invalid clock time: {at!r}")
        self._now = moment

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        """Move forward by timedelta(**kwargs) and return the new time."""
        self._now = self._now + timedelta(**kwargs)
        return self._now


class Subscription:
    """Handle returned by Ticker.subscribe."""

    def __init__(
        self,
        ticker: "Ticker",
        callback: Callable[[datetime], None],
        every_seconds: float,
    ):
        self.ticker = ticker
        self.callback = callback
        self.every = timedelta(seconds=every_seconds)
        self.last_fired: Optional[datetime] = None

    @property
    def active(self) -> bool:
        return self in self.ticker.subscriptions

    def is_due(self, now: datetime) -> bool:
        if self.last_fired is None:
            return True
        return now - self.last_fired >= self.every

    def cancel(self) -> None:
        self.ticker.unsubscribe(self)


class Ticker:
    """
    Single source of "now" for live displays.

    Views subscribe a callback with a refresh interval (e.g. 1s for the
    duration text, 60s for the fee estimate). Each tick reads the clock
    once and hands that same instant to every subscriber that is due, so
    rows rendered together never disagree about the current time.
    """

    def __init__(self, clock=None):
        self.clock = clock or SystemClock()
        self.subscriptions: List[Subscription] = []

    def subscribe(
        self, callback: Callable[[datetime], None], every_seconds: float = 1
    ) -> Subscription:
        if every_seconds <= 0:
            raise ValueError("every_seconds must be positive")
        subscription = Subscription(self, callback, every_seconds)
        self.subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self.subscriptions:
            self.subscriptions.remove(subscription)

    def tick(self) -> datetime:
        """Fire all due subscribers with one shared timestamp."""
        now = self.clock.now()
        # Copy so callbacks may cancel themselves mid-tick
        for subscription in list(self.subscriptions):
            if not subscription.active or not subscription.is_due(now):
                continue
            subscription.last_fired = now
            try:
                subscription.callback(now)
            except Exception:
                logger.exception("Ticker subscriber failed")
        return now
