"""Unit tests for VCS date normalization."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from buildvcs.vcs.errors import FormatError
from buildvcs.vcs.timestamps import normalize


class TestNormalize:
    """Test normalize() on svn and git date shapes."""

    def test_svn_zulu(self):
        """svn info dates end in Z and become +00:00."""
        stamp = normalize("2021-03-04T10:11:12.000000Z")
        assert stamp == datetime(2021, 3, 4, 10, 11, 12, tzinfo=timezone.utc)
        assert stamp.utcoffset() == timedelta(0)
        assert stamp.isoformat() == "2021-03-04T10:11:12+00:00"

    def test_git_iso_with_offset(self):
        """git log --date=iso dates carry a +HHMM offset after a blank."""
        stamp = normalize("2021-03-04 19:11:12 +0900")
        assert stamp.utcoffset() == timedelta(hours=9)
        assert stamp.isoformat() == "2021-03-04T19:11:12+09:00"
        assert stamp == datetime(2021, 3, 4, 10, 11, 12, tzinfo=timezone.utc)

    def test_negative_offset(self):
        stamp = normalize("2020-12-31 22:30:00 -0130")
        assert stamp.utcoffset() == -timedelta(hours=1, minutes=30)
        assert stamp == datetime(2021, 1, 1, 0, 0, tzinfo=timezone.utc)

    def test_fraction_kept(self):
        stamp = normalize("2021-03-04T10:11:12.123456789Z")
        assert stamp.microsecond == 123456

    def test_deterministic(self):
        value = "2019-07-01T00:00:01.5Z"
        assert normalize(value) == normalize(value)

    def test_offset_beyond_a_day_uses_fallback(self):
        """Offsets tzinfo rejects still give the same absolute instant."""
        stamp = normalize("2021-03-04 10:00:00 +2500")
        expected = datetime(2021, 3, 4, 10, 0, tzinfo=timezone.utc) - timedelta(hours=25)
        assert stamp == expected
        assert stamp.utcoffset() == timedelta(0)

    @pytest.mark.parametrize(
        "value",
        [
            "yesterday",
            "2021-03-04",
            "2021-03-04T10:11:12",  # no zone
            "2021-03-04T10:11:12+09:00",  # colon in offset
            "",
        ],
    )
    def test_unknown_format(self, value):
        with pytest.raises(FormatError, match="unknown time format"):
            normalize(value)

    def test_invalid_calendar_date(self):
        """A matching string whose fields are not a date fails both constructions."""
        with pytest.raises(FormatError, match="invalid time"):
            normalize("2021-02-30T10:11:12Z")

    def test_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            normalize("garbage")
