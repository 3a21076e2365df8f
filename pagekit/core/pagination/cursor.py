"""Cursor encoding and decoding for pagination.

Cursors are opaque strings that encode the position of one record in a
sorted, filtered result set: the values of every sort field (including the
id tie-breaker), the sort signature they were taken under, and optional
session data (snapshot time, filter hash).

The cursor format is:
1. JSON object with short keys and type-tagged values
2. Base64 URL-safe encoded without padding (plain codec), or
   Fernet-encrypted with an embedded expiry (encrypted codec)

Example cursor payload:
    {"v": 1, "k": {"created_at": {"$dt": "2025-01-15T10:30:00+00:00"}, "id": "abc-123"},
     "s": [["created_at", "desc"], ["id", "asc"]], "d": "next"}

Values keep their Python type across a round trip: str, int, float, bool,
None, datetime, date, UUID and Decimal are supported. Unknown payload keys
are ignored so newer servers can add fields without breaking old cursors.
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import re
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from cryptography.fernet import Fernet, InvalidToken, MultiFernet
from pydantic import BaseModel, Field

from pagekit.core.exceptions import ConfigError, InvalidCursorError
from pagekit.core.pagination.fields import parse_datetime
from pagekit.core.pagination.types import NULLS_FIRST_TOKEN, PageDirection

if TYPE_CHECKING:
    from pagekit.core.pagination.fields import CollectionSchema
    from pagekit.core.pagination.types import SortSpec

logger = logging.getLogger(__name__)

CURSOR_VERSION = 1
MAX_CURSOR_LENGTH = 4096

_BASE64URL = re.compile(r"^[A-Za-z0-9_-]+={0,2}$")


def utcnow() -> datetime:
    return datetime.now(UTC)


def read_field(record: Any, name: str) -> Any:
    """Read a field from a mapping-like record or an object attribute."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


class CursorData(BaseModel):
    """Decoded cursor contents.

    Attributes:
        values: Sort field values (including the id tie-breaker) of the record
        sort: Sort signature the cursor was made under: ``(field, direction)``
            pairs, with a trailing ``nullsfirst`` where NULLs sort first
        direction: Default direction to move when the request does not say
        snapshot_time: Pinned snapshot time of the pagination session
        filter_hash: Fingerprint of the filter set the cursor belongs to
        expires_at: Expiry (encrypted cursors only)
    """

    values: dict[str, Any] = Field(description="Sort field values for seeking")
    sort: tuple[tuple[str, ...], ...] = Field(
        default=(),
        description="Sort signature the values belong to",
    )
    direction: PageDirection = Field(
        default=PageDirection.NEXT,
        description="Default pagination direction",
    )
    snapshot_time: datetime | None = Field(default=None, description="Snapshot pin")
    filter_hash: str | None = Field(default=None, description="Filter set fingerprint")
    expires_at: datetime | None = Field(default=None, description="Expiry of signed cursors")

    model_config = {"frozen": True}

    def validate_types(self, schema: CollectionSchema) -> None:
        """Check every value against the schema type of its field.

        Raises:
            InvalidCursorError: If a value does not fit its field type, or a
                non-nullable field holds NULL
        """
        for name, value in self.values.items():
            field = schema.get(name)
            if field is None:
                continue
            if value is None and not field.nullable:
                raise InvalidCursorError(
                    f"Cursor holds NULL for non-nullable field '{name}'",
                    reason="type_mismatch",
                )
            if not field.type.accepts(value):
                raise InvalidCursorError(
                    f"Cursor value for '{name}' is not a {field.type.value}",
                    reason="type_mismatch",
                )


def _encode_value(value: Any) -> Any:
    if value is None or isinstance(value, bool | int | str):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            msg = "Cursor values must be finite numbers"
            raise TypeError(msg)
        return value
    if isinstance(value, datetime):
        return {"$dt": value.isoformat()}
    if isinstance(value, date):
        return {"$date": value.isoformat()}
    if isinstance(value, UUID):
        return {"$uuid": str(value)}
    if isinstance(value, Decimal):
        return {"$dec": str(value)}
    msg = f"Unsupported cursor value type: {type(value).__name__}"
    raise TypeError(msg)


def _decode_sort_entry(entry: Any) -> tuple[str, ...]:
    if not isinstance(entry, list) or len(entry) not in (2, 3):
        msg = "Sort entries must be [field, direction] or [field, direction, nullsfirst]"
        raise ValueError(msg)
    if len(entry) == 3 and entry[2] != NULLS_FIRST_TOKEN:
        msg = f"Unknown null placement {entry[2]!r}"
        raise ValueError(msg)
    return tuple(str(part) for part in entry)


def _decode_value(raw: Any) -> Any:
    if raw is None or isinstance(raw, bool | int | float | str):
        return raw
    if isinstance(raw, dict) and len(raw) == 1:
        ((tag, text),) = raw.items()
        if not isinstance(text, str):
            msg = f"Tagged value {tag} must be a string"
            raise ValueError(msg)
        match tag:
            case "$dt":
                return parse_datetime(text)
            case "$date":
                return date.fromisoformat(text)
            case "$uuid":
                return UUID(text)
            case "$dec":
                return Decimal(text)
    msg = f"Unsupported cursor value: {raw!r}"
    raise ValueError(msg)


class CursorCodec:
    """Encode and decode pagination cursors as URL-safe base64 JSON.

    Plain cursors are not signed: clients could forge them, which is
    harmless since the server re-validates them against the live sort and
    schema. Use ``FernetCursorCodec`` where tamper-proof, expiring cursors
    are required.

    Usage:
        codec = CursorCodec()
        token = codec.encode(CursorData(
            values={"created_at": datetime.now(UTC), "id": "abc-123"},
            sort=(("created_at", "desc"), ("id", "asc")),
        ))
        data = codec.decode(token)
    """

    signed = False

    def encode(self, data: CursorData) -> str:
        """Encode cursor data to an opaque string.

        Raises:
            TypeError: If a value type cannot be represented in a cursor
        """
        return self._wrap(self._dump(self._to_payload(data)))

    def decode(self, cursor: str) -> CursorData:
        """Decode a cursor string to cursor data.

        Raises:
            InvalidCursorError: If the cursor is malformed, incomplete or
                (for signed cursors) tampered with or expired
        """
        if not cursor or len(cursor) > MAX_CURSOR_LENGTH:
            raise InvalidCursorError("Cursor is empty or too long", reason="malformed")
        raw = self._unwrap(cursor)
        try:
            payload = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise InvalidCursorError("Cursor payload is not valid JSON", reason="malformed") from e
        if not isinstance(payload, dict):
            raise InvalidCursorError("Cursor payload must be an object", reason="malformed")
        return self._from_payload(payload)

    def create_cursor(
        self,
        record: Any,
        sort: SortSpec,
        *,
        direction: PageDirection = PageDirection.NEXT,
        snapshot_time: datetime | None = None,
        filter_hash: str | None = None,
        field_map: Mapping[str, str] | None = None,
    ) -> str:
        """Create a cursor pointing at ``record``.

        Args:
            record: Mapping or object holding the sort field values
            sort: Sort specification the page was read with
            direction: Direction the cursor should move by default
            snapshot_time: Snapshot pin to carry forward
            filter_hash: Fingerprint of the live filters
            field_map: Public field name to storage attribute name

        Returns:
            Encoded cursor string
        """
        field_map = field_map or {}
        values = {
            field.name: read_field(record, field_map.get(field.name, field.name))
            for field in sort
        }
        return self.encode(
            CursorData(
                values=values,
                sort=sort.signature,
                direction=direction,
                snapshot_time=snapshot_time,
                filter_hash=filter_hash,
            )
        )

    # -- payload -----------------------------------------------------------

    def _to_payload(self, data: CursorData) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "v": CURSOR_VERSION,
            "k": {key: _encode_value(value) for key, value in data.values.items()},
            "s": [list(entry) for entry in data.sort],
            "d": data.direction.value,
        }
        if data.snapshot_time is not None:
            payload["t"] = data.snapshot_time.isoformat()
        if data.filter_hash is not None:
            payload["f"] = data.filter_hash
        return payload

    def _from_payload(self, payload: dict[str, Any]) -> CursorData:
        version = payload.get("v")
        if version != CURSOR_VERSION:
            raise InvalidCursorError(f"Unsupported cursor version: {version!r}", reason="version")

        raw_values = payload.get("k")
        raw_sort = payload.get("s")
        if not isinstance(raw_values, dict) or not raw_values:
            raise InvalidCursorError("Cursor is missing sort values", reason="missing_field")
        if not isinstance(raw_sort, list) or not raw_sort:
            raise InvalidCursorError("Cursor is missing its sort signature", reason="missing_field")

        try:
            values = {str(key): _decode_value(value) for key, value in raw_values.items()}
            sort = tuple(_decode_sort_entry(entry) for entry in raw_sort)
            direction = PageDirection(payload.get("d", PageDirection.NEXT.value))
            snapshot = payload.get("t")
            snapshot_time = parse_datetime(str(snapshot)) if snapshot is not None else None
        except (TypeError, ValueError) as e:
            raise InvalidCursorError(f"Cursor payload is corrupted: {e}", reason="malformed") from e

        missing = [entry[0] for entry in sort if entry[0] not in values]
        if missing:
            raise InvalidCursorError(
                f"Cursor is missing values for {', '.join(missing)}",
                reason="missing_field",
            )

        filter_hash = payload.get("f")
        return CursorData(
            values=values,
            sort=sort,
            direction=direction,
            snapshot_time=snapshot_time,
            filter_hash=str(filter_hash) if filter_hash is not None else None,
            expires_at=self._expiry_of(payload),
        )

    def _expiry_of(self, payload: dict[str, Any]) -> datetime | None:
        return None

    @staticmethod
    def _dump(payload: dict[str, Any]) -> bytes:
        return json.dumps(payload, separators=(",", ":"), allow_nan=False).encode()

    # -- transport ---------------------------------------------------------

    def _wrap(self, raw: bytes) -> str:
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    def _unwrap(self, cursor: str) -> bytes:
        if not _BASE64URL.match(cursor):
            raise InvalidCursorError("Cursor is not URL-safe base64", reason="malformed")
        padded = cursor + "=" * (-len(cursor) % 4)
        try:
            return base64.urlsafe_b64decode(padded.encode())
        except (binascii.Error, ValueError) as e:
            raise InvalidCursorError("Cursor is not URL-safe base64", reason="malformed") from e


class FernetCursorCodec(CursorCodec):
    """Encrypted, authenticated cursors with an embedded expiry.

    Uses ``MultiFernet`` so keys can be rotated: the first key encrypts new
    cursors, every key is tried when decrypting.

    Usage:
        codec = FernetCursorCodec([Fernet.generate_key()], ttl_seconds=900)
        token = codec.encode(data)
        codec.decode(token)  # raises InvalidCursorError once expired
    """

    signed = True

    def __init__(
        self,
        keys: Sequence[str | bytes],
        *,
        ttl_seconds: int = 3600,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not keys:
            msg = "Encrypted cursors need at least one key"
            raise ConfigError(msg)
        try:
            self._fernet = MultiFernet([Fernet(key) for key in keys])
        except (ValueError, TypeError, binascii.Error) as e:
            msg = "Invalid cursor encryption key"
            raise ConfigError(msg, {"error": str(e)}) from e
        if ttl_seconds <= 0:
            msg = "Cursor TTL must be positive"
            raise ConfigError(msg, {"ttl_seconds": ttl_seconds})
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def _to_payload(self, data: CursorData) -> dict[str, Any]:
        payload = super()._to_payload(data)
        payload["x"] = int((self._clock() + self.ttl).timestamp())
        return payload

    def _from_payload(self, payload: dict[str, Any]) -> CursorData:
        data = super()._from_payload(payload)
        if data.expires_at is None:
            raise InvalidCursorError("Cursor has no expiry", reason="missing_field")
        if self._clock() >= data.expires_at:
            logger.debug("Rejected expired cursor", extra={"expires_at": data.expires_at.isoformat()})
            raise InvalidCursorError("Cursor has expired", reason="expired")
        return data

    def _expiry_of(self, payload: dict[str, Any]) -> datetime | None:
        expiry = payload.get("x")
        if expiry is None:
            return None
        if not isinstance(expiry, int) or isinstance(expiry, bool):
            raise InvalidCursorError("Cursor expiry is corrupted", reason="malformed")
        return datetime.fromtimestamp(expiry, tz=UTC)

    def _wrap(self, raw: bytes) -> str:
        return self._fernet.encrypt(raw).decode().rstrip("=")

    def _unwrap(self, cursor: str) -> bytes:
        if not _BASE64URL.match(cursor):
            raise InvalidCursorError("Cursor is not URL-safe base64", reason="malformed")
        padded = cursor + "=" * (-len(cursor) % 4)
        try:
            return self._fernet.decrypt(padded.encode())
        except InvalidToken as e:
            raise InvalidCursorError("Cursor signature is invalid", reason="tampered") from e


def build_codec(
    keys: Sequence[str | bytes] = (),
    *,
    ttl_seconds: int = 3600,
    clock: Callable[[], datetime] = utcnow,
) -> CursorCodec:
    """Return an encrypted codec when keys are configured, a plain one otherwise."""
    if keys:
        return FernetCursorCodec(keys, ttl_seconds=ttl_seconds, clock=clock)
    return CursorCodec()


__all__ = [
    "CURSOR_VERSION",
    "CursorCodec",
    "CursorData",
    "FernetCursorCodec",
    "build_codec",
    "read_field",
    "utcnow",
]
