"""Unit tests for counter key derivation."""

from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from hashlib import sha256

import pytest

from ratewindow.core.errors import InvalidIdentifiersError
from ratewindow.utils.bucket_keys import (
    build_bucket_key,
    canonicalize_identifiers,
    format_minute,
    identifiers_digest,
    to_epoch_seconds,
)


class TestCanonicalizeIdentifiers:
    def test_mapping_is_sorted_compact_json(self) -> None:
        assert (
            canonicalize_identifiers({"username": "test", "ip": "127.0.0.1"})
            == b'{"ip":"127.0.0.1","username":"test"}'
        )

    def test_single_string(self) -> None:
        assert canonicalize_identifiers("127.0.0.1") == b'"127.0.0.1"'

    def test_pairs_fold_into_mapping(self) -> None:
        pairs = [("username", "test"), ("ip", "127.0.0.1")]
        assert canonicalize_identifiers(pairs) == canonicalize_identifiers(
            {"ip": "127.0.0.1", "username": "test"}
        )

    def test_ordered_dict_matches_dict(self) -> None:
        ordered = OrderedDict([("b", 2), ("a", 1)])
        assert canonicalize_identifiers(ordered) == canonicalize_identifiers({"a": 1, "b": 2})

    def test_non_ascii_encoded_as_utf8(self) -> None:
        assert canonicalize_identifiers({"user": "zoë"}) == '{"user":"zoë"}'.encode("utf-8")

    def test_string_and_mapping_do_not_collide(self) -> None:
        assert identifiers_digest("ip") != identifiers_digest({"ip": ""})

    def test_scalar_types_kept_distinct(self) -> None:
        assert identifiers_digest({"id": 1}) != identifiers_digest({"id": "1"})

    @pytest.mark.parametrize(
        "identifiers",
        [
            "",
            {},
            [],
            b"raw-bytes",
            42,
            {1: "numeric-name"},
            {"": "empty-name"},
            {"ip": ["10.0.0.1"]},
            {"ip": {"nested": True}},
            {"score": float("nan")},
            [("ip", "a"), ("ip", "b")],
            [("ip",)],
        ],
    )
    def test_rejects_non_canonical_input(self, identifiers) -> None:
        with pytest.raises(InvalidIdentifiersError) as exc_info:
            canonicalize_identifiers(identifiers)
        assert exc_info.value.code == "invalid_identifiers"


class TestDigest:
    def test_digest_is_sha256_of_canonical_bytes(self) -> None:
        expected = sha256(b'{"ip":"127.0.0.1","username":"test"}').hexdigest()
        assert identifiers_digest({"ip": "127.0.0.1", "username": "test"}) == expected

    def test_digest_is_valid_sha256_hex(self) -> None:
        digest = identifiers_digest("bob")
        assert len(digest) == 64
        int(digest, 16)  # raises if not valid hex


class TestMinuteFormatting:
    def test_format_minute_utc(self) -> None:
        assert format_minute(1361979524) == "201302271538"

    def test_seconds_are_truncated(self) -> None:
        assert format_minute(1361979480) == format_minute(1361979539)
        assert format_minute(1361979540) == "201302271539"

    def test_to_epoch_seconds_floors_floats(self) -> None:
        assert to_epoch_seconds(1361979524.999) == 1361979524

    def test_to_epoch_seconds_converts_offset_datetimes(self) -> None:
        moment = datetime(2013, 2, 27, 16, 38, 44, tzinfo=timezone(timedelta(hours=1)))
        assert to_epoch_seconds(moment) == 1361979524

    @pytest.mark.parametrize("moment", [datetime(2013, 2, 27), "1361979524", True])
    def test_to_epoch_seconds_rejects_bad_input(self, moment) -> None:
        with pytest.raises(ValueError):
            to_epoch_seconds(moment)


def test_build_bucket_key_layout() -> None:
    assert build_bucket_key("abc", 1361979524) == "RateLimit:201302271538:abc"
    assert build_bucket_key("abc", 1361979524, prefix="Api") == "Api:201302271538:abc"
