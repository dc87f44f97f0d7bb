"""Annotated field types shared by the jam models.

Constraints live here so entities and channel messages validate ids,
positions and capacities the same way::

    class Snapshot(BaseModel):
        session_id: SessionIdStr
        position: PositionSeconds
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated

from pydantic import BeforeValidator, Field

NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]
NonEmptyStr = Annotated[str, Field(min_length=1)]

# Identifiers issued by the user directory and the session store.
UserIdStr = Annotated[str, Field(min_length=1, max_length=64)]
SessionIdStr = Annotated[str, Field(min_length=1, max_length=64)]

SessionNameStr = Annotated[str, Field(min_length=1, max_length=100)]
"""Display name of a jam session, 1 to 100 characters."""

HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]
"""Streamable audio location; only http(s) sources are playable."""

PositionSeconds = Annotated[float, Field(ge=0.0)]
"""Offset into a song, in seconds."""

MaxParticipantsInt = Annotated[int, Field(ge=1, le=100)]


def _require_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        raise ValueError("naive datetime; session timestamps must carry a UTC offset")
    return value.astimezone(UTC)


UtcDatetimeField = Annotated[datetime, BeforeValidator(_require_utc)]
"""Aware datetime converted to UTC on input."""
