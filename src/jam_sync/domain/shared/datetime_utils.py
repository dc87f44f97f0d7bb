"""UTC timestamp helpers.

Session tables hold fixed-width microsecond ISO strings, so SQL string
comparison orders them. Web clients get millisecond ``...Z`` strings, the
shape JavaScript's ``Date.toISOString`` produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

from ...domain.shared.messages import ErrorMessages


@dataclass(frozen=True, slots=True)
class UtcDateTime:
    dt: datetime

    def __post_init__(self) -> None:
        if self.dt.tzinfo is None:
            raise ValueError(ErrorMessages.TIMEZONE_REQUIRED_UTC_DATETIME)
        object.__setattr__(self, "dt", self.dt.astimezone(UTC))

    @classmethod
    def from_iso(cls, value: str) -> UtcDateTime:
        """Parse a stored or client timestamp; both offset and ``Z`` forms work."""
        return cls(datetime.fromisoformat(value))

    @property
    def iso_z(self) -> str:
        return self.dt.isoformat(timespec="milliseconds").removesuffix("+00:00") + "Z"

    @property
    def db_timestamp(self) -> str:
        return self.dt.isoformat(timespec="microseconds")


def utcnow() -> datetime:
    return datetime.now(UTC)


def seconds_since(then: datetime, now: datetime | None = None) -> float:
    """Elapsed seconds from ``then`` to ``now``, never negative."""
    return max(0.0, ((now or utcnow()) - then).total_seconds())
