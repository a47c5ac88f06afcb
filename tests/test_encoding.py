"""
Tests for encoding detection and text decoding.
"""

import pytest

from ctxsync.encoding import (
    EncodingReader,
    decode_text,
    is_binary,
    within_replacement_threshold,
)
from ctxsync.exceptions import UnreadableFileError


class TestDecodeText:
    """Test suite for decode_text."""

    def test_empty_bytes(self):
        """Empty input decodes to an empty string."""
        assert decode_text(b"") == ""

    def test_utf8(self):
        """Valid UTF-8 is decoded as UTF-8."""
        text = "héllo wörld\n中文\n"
        assert decode_text(text.encode("utf-8")) == text

    def test_gbk_fallback(self):
        """GBK content that is invalid UTF-8 falls back to GBK."""
        text = "中文测试"
        assert decode_text(text.encode("gbk")) == text

    def test_latin1_fallback(self):
        """Bytes invalid in UTF-8 and GBK fall back to latin-1."""
        assert decode_text(b"caf\xe9") == "café"

    def test_nul_byte_is_binary(self):
        """Content with a NUL byte is rejected as binary."""
        with pytest.raises(UnreadableFileError):
            decode_text(b"abc\x00def")

    def test_short_content_within_threshold(self):
        """Short content with at most 5 replacement characters is accepted."""
        result = decode_text(b"ab\xffcd", encodings=("utf-8",))
        assert result == "ab\ufffdcd"

    def test_short_content_over_threshold(self):
        """Short content with more than 5 replacement characters is rejected."""
        with pytest.raises(UnreadableFileError):
            decode_text(b"a" + b"\xff" * 6, encodings=("utf-8",))

    def test_long_content_ratio_threshold(self):
        """Long content is accepted up to 5% replacement characters."""
        accepted = decode_text(b"a" * 200 + b"\xff" * 5, encodings=("utf-8",))
        assert accepted.count("\ufffd") == 5

        with pytest.raises(UnreadableFileError):
            decode_text(b"a" * 100 + b"\xff" * 20, encodings=("utf-8",))

    def test_fewest_replacements_wins(self):
        """When no encoding is clean, the one with fewest replacements is used."""
        data = "中".encode("gbk") + b"\xff"
        result = decode_text(data, encodings=("utf-8", "gbk"))
        assert result.startswith("中")

    def test_unknown_encoding_skipped(self):
        """Unknown encoding names are skipped."""
        assert decode_text(b"plain", encodings=("no-such-codec", "utf-8")) == "plain"


class TestIsBinary:
    """Test suite for binary detection."""

    def test_text_is_not_binary(self):
        """Ordinary text with tabs and newlines is not binary."""
        assert not is_binary(b"def main():\n\treturn 0\r\n")

    def test_control_characters_are_binary(self):
        """More than 30% control characters marks content as binary."""
        assert is_binary(bytes(range(1, 8)) * 10)

    def test_empty_is_not_binary(self):
        """Empty content is not binary."""
        assert not is_binary(b"")

    def test_only_first_8k_sampled(self):
        """A NUL byte past the sample window is not inspected."""
        assert not is_binary(b"a" * 9000 + b"\x00")


def test_within_replacement_threshold():
    """Short content allows 5 markers, long content allows 5%."""
    assert within_replacement_threshold("x" * 50, 5)
    assert not within_replacement_threshold("x" * 50, 6)
    assert within_replacement_threshold("x" * 1000, 50)
    assert not within_replacement_threshold("x" * 1000, 51)


class TestEncodingReader:
    """Test suite for EncodingReader."""

    def test_can_read_by_extension(self, temp_dir):
        """Only tracked extensions are readable, case-insensitively."""
        reader = EncodingReader([".py", ".md"])

        assert reader.can_read(temp_dir / "main.py")
        assert reader.can_read(temp_dir / "README.MD")
        assert not reader.can_read(temp_dir / "logo.png")
        assert not reader.can_read(temp_dir / "Makefile")

    def test_read_file(self, temp_dir):
        """Tracked files are read and decoded."""
        path = temp_dir / "notes.txt"
        path.write_bytes("naïve\n".encode("utf-8"))

        assert EncodingReader([".txt"]).read(path) == "naïve\n"

    def test_read_preserves_line_endings(self, temp_dir):
        """CRLF line endings survive reading."""
        path = temp_dir / "windows.txt"
        path.write_bytes(b"one\r\ntwo\r\n")

        assert EncodingReader([".txt"]).read(path) == "one\r\ntwo\r\n"

    def test_read_untracked_extension(self, temp_dir):
        """Reading an untracked extension raises UnreadableFileError."""
        path = temp_dir / "image.png"
        path.write_bytes(b"data")

        with pytest.raises(UnreadableFileError):
            EncodingReader([".txt"]).read(path)

    def test_read_binary_file(self, temp_dir):
        """Binary content under a text extension raises UnreadableFileError naming the file."""
        path = temp_dir / "data.txt"
        path.write_bytes(b"\x00\x01\x02binary")

        with pytest.raises(UnreadableFileError, match="data.txt"):
            EncodingReader([".txt"]).read(path)
