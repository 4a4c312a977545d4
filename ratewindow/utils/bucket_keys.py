"""Counter key derivation for the per-minute rate limit buckets.

A bucket key has the shape ``<prefix>:<YYYYMMDDHHmm>:<digest>``:

- ``prefix`` namespaces limiters sharing one store (default ``RateLimit``).
- ``YYYYMMDDHHmm`` is the UTC minute containing the timestamp.
- ``digest`` is the SHA-256 hex digest of the canonical identifier bytes.

Canonical form of an identifier set is compact JSON with sorted keys, so two
mappings holding the same pairs always hash identically regardless of
insertion order.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from hashlib import sha256
from typing import Union

from ratewindow.core.errors import InvalidIdentifiersError

Scalar = Union[str, int, float, bool, None]
Identifiers = Union[str, Mapping[str, Scalar], Iterable[tuple[str, Scalar]]]
Timestamp = Union[int, float, datetime]

DEFAULT_KEY_PREFIX = "RateLimit"
MINUTE_FORMAT = "%Y%m%d%H%M"

_SCALAR_TYPES = (str, int, float, bool, type(None))


def _invalid(message: str, **context: object) -> InvalidIdentifiersError:
    return InvalidIdentifiersError(
        code="invalid_identifiers",
        message=message,
        details={"context": dict(context)} if context else None,
    )


def _normalize_pairs(identifiers: Iterable) -> dict[str, Scalar]:
    """Fold a mapping or an iterable of pairs into a plain dict.

    Raises:
        InvalidIdentifiersError: On non-string keys, duplicate pair keys,
            malformed pairs, or values that are not JSON scalars.
    """

    if isinstance(identifiers, Mapping):
        items = list(identifiers.items())
        from_pairs = False
    else:
        items = []
        for pair in identifiers:
            if not isinstance(pair, (tuple, list)) or len(pair) != 2:
                raise _invalid("Identifier pairs must be (name, value) tuples")
            items.append((pair[0], pair[1]))
        from_pairs = True

    normalized: dict[str, Scalar] = {}
    for name, value in items:
        if not isinstance(name, str) or not name:
            raise _invalid("Identifier names must be non-empty strings", name=repr(name))
        if from_pairs and name in normalized:
            raise _invalid("Duplicate identifier name", name=name)
        if not isinstance(value, _SCALAR_TYPES):
            raise _invalid(
                "Identifier values must be str, int, float, bool or None",
                name=name,
                value_type=type(value).__name__,
            )
        if isinstance(value, float) and not math.isfinite(value):
            raise _invalid("Identifier values must be finite numbers", name=name)
        normalized[name] = value

    if not normalized:
        raise _invalid("Identifier set must not be empty")
    return normalized


def canonicalize_identifiers(identifiers: Identifiers) -> bytes:
    """Serialize identifiers into their canonical byte form.

    Args:
        identifiers: A non-empty string, a mapping of names to scalars, or an
            iterable of ``(name, value)`` pairs.

    Returns:
        UTF-8 encoded compact JSON with sorted keys.

    Raises:
        InvalidIdentifiersError: If the identifiers cannot be canonicalized.

    Examples:
        >>> canonicalize_identifiers({"username": "test", "ip": "127.0.0.1"})
        b'{"ip":"127.0.0.1","username":"test"}'
        >>> canonicalize_identifiers("127.0.0.1")
        b'"127.0.0.1"'
    """

    if isinstance(identifiers, str):
        if not identifiers:
            raise _invalid("Identifier string must not be empty")
        payload: object = identifiers
    elif isinstance(identifiers, (bytes, bytearray)):
        raise _invalid("Identifiers must be text, not bytes")
    elif isinstance(identifiers, (Mapping, Iterable)):
        payload = _normalize_pairs(identifiers)
    else:
        raise _invalid(
            "Unsupported identifier type",
            value_type=type(identifiers).__name__,
        )

    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def identifiers_digest(identifiers: Identifiers) -> str:
    """Return the hex SHA-256 digest of the canonical identifier bytes."""

    return sha256(canonicalize_identifiers(identifiers)).hexdigest()


def to_epoch_seconds(moment: Timestamp) -> int:
    """Convert a timestamp into whole UNIX seconds.

    Raises:
        ValueError: If a naive datetime is given.
    """

    if isinstance(moment, datetime):
        if moment.tzinfo is None:
            raise ValueError("datetime must be timezone-aware")
        return math.floor(moment.timestamp())
    if isinstance(moment, bool) or not isinstance(moment, (int, float)):
        raise ValueError("timestamp must be a number or an aware datetime")
    return math.floor(moment)


def format_minute(epoch_seconds: int) -> str:
    """Format the UTC minute containing ``epoch_seconds`` as YYYYMMDDHHmm."""

    minute_start = (epoch_seconds // 60) * 60
    return datetime.fromtimestamp(minute_start, tz=timezone.utc).strftime(MINUTE_FORMAT)


def build_bucket_key(
    digest: str,
    epoch_seconds: int,
    *,
    prefix: str = DEFAULT_KEY_PREFIX,
) -> str:
    """Build the counter key for one identifier digest and one minute."""

    return f"{prefix}:{format_minute(epoch_seconds)}:{digest}"
