"""Injectable time source."""

from datetime import date, datetime, timezone


class Clock:
    """Wall clock in UTC.

    Services take a Clock instead of calling datetime.now() so tests can
    move time forward deterministically.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()

    def now_naive(self) -> datetime:
        """Current UTC time without tzinfo (columns are TIMESTAMP WITHOUT TIME ZONE)."""
        return self.now().replace(tzinfo=None)


system_clock = Clock()
