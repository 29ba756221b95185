"""
Tests for label formatting helpers.
"""

import pytest

from core.formatting import censor, format_bytes, format_elapsed

KB = 1024
MB = KB ** 2
GB = KB ** 3
TB = KB ** 4


class TestFormatBytes:
    """Test format_bytes."""

    @pytest.mark.parametrize(
        "size,decimals,expected",
        [
            (0, 2, "0 Bytes"),
            (1000, 2, "1000 Bytes"),
            (KB, 2, "1 KB"),
            (1300, 2, "1.27 KB"),
            (1500, 3, "1.465 KB"),
            (1300, -1, "1 KB"),
            (MB + 150 * KB, 2, "1.15 MB"),
            (GB + 870 * MB, 2, "1.85 GB"),
            (TB + 512 * GB, 2, "1.5 TB"),
            (TB + 700 * GB, 4, "1.6836 TB"),
        ],
    )
    def test_format(self, size, decimals, expected):
        """Test formatting across units and precisions."""
        assert format_bytes(size, decimals) == expected

    def test_negative(self):
        """Test that negative sizes are rejected."""
        with pytest.raises(ValueError, match='Bytes must be above 0; got "-1"'):
            format_bytes(-1)


class TestCensor:
    """Test censor."""

    def test_keeps_three_chars(self):
        """Test that all but the first 3 chars are hidden."""
        assert censor("my_user", "my_repo") == "my_****/my_****"

    def test_short_names_fully_hidden(self):
        """Test that names under 4 chars are fully hidden."""
        assert censor("hey", "you") == "***/***"


class TestFormatElapsed:
    """Test format_elapsed."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0 seconds"),
            (1, "1 second"),
            (59, "59 seconds"),
            (60, "1 minute"),
            (125, "2 minutes and 5 seconds"),
            (3723, "1 hour, 2 minutes and 3 seconds"),
            (7200.9, "2 hours"),
        ],
    )
    def test_format(self, seconds, expected):
        """Test durations with one, two and three parts."""
        assert format_elapsed(seconds) == expected
