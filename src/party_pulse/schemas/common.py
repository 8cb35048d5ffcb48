"""Shared Pydantic schemas: timestamps and the feed pagination cursor."""
from __future__ import annotations

import base64
import binascii
from datetime import datetime
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from party_pulse.core.errors import ValidationError
from party_pulse.db.time import as_utc

UTCDatetime = Annotated[datetime, AfterValidator(as_utc)]

_CURSOR_SEPARATOR = "|"


class FeedCursor(BaseModel):
    """Position of the last item a reader has seen.

    The boundary is anchored to an item key, not a numeric offset, so it does
    not shift when newer items are inserted.
    """

    model_config = ConfigDict(frozen=True)

    timestamp: UTCDatetime
    id: str = Field(..., min_length=1)

    @property
    def key(self) -> tuple[datetime, str]:
        return (self.timestamp, self.id)

    def encode(self) -> str:
        """Return an opaque url-safe token for this cursor."""
        raw = f"{self.timestamp.isoformat()}{_CURSOR_SEPARATOR}{self.id}"
        return base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")

    @classmethod
    def decode(cls, token: str) -> FeedCursor:
        """Parse a token produced by :meth:`encode`.

        Raises:
            ValidationError: If the token is not a valid cursor.
        """
        padding = "=" * (-len(token) % 4)
        try:
            raw = base64.urlsafe_b64decode(token + padding).decode("utf-8")
            timestamp, item_id = raw.split(_CURSOR_SEPARATOR, 1)
            return cls(timestamp=datetime.fromisoformat(timestamp), id=item_id)
        except (binascii.Error, UnicodeDecodeError, ValueError, PydanticValidationError) as exc:
            raise ValidationError(f"Malformed feed cursor: {exc}", field="cursor") from exc
