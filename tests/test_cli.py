"""Tests for CLI module."""

import json
import os
import struct
import tempfile
from collections import Counter

import pytest

from elfview.cli import (
    create_parser,
    format_info_row,
    format_span_line,
    main,
    walk_spans,
)
from elfview.constants import ELF_MAGIC
from elfview.models import InfoRow
from elfview.parser import parse_bytes
from elfview.ranges import IDENTITY, PROGRAM_HEADER_ENTRY, RangeType


def create_test_elf(abi_version: int = 0) -> bytes:
    """Create a minimal 64-bit little endian ELF file for CLI testing."""
    data = bytearray(64 + 56)
    data[0:4] = ELF_MAGIC
    data[4] = 2  # 64-bit
    data[5] = 1  # Little endian
    data[6] = 1  # Current version
    data[8] = abi_version

    struct.pack_into(
        "<HHIQQQIHHHHHH", data, 16,
        3, 183, 1, 0x1000, 64, 0, 0, 64, 56, 1, 64, 0, 0,
    )
    struct.pack_into("<IIQQQQQQ", data, 64, 1, 6, 0, 0, 0, 120, 120, 0x10000)

    return bytes(data)


def write_temp(data: bytes) -> str:
    with tempfile.NamedTemporaryFile(suffix=".so", delete=False) as f:
        f.write(data)
        return f.name


class TestFormatting:
    """Tests for output formatting functions."""

    def test_format_info_row(self):
        """Test formatting a plain row."""
        line = format_info_row(InfoRow("class", "Object class", "64-bit"))

        assert line.startswith("Object class:")
        assert line.endswith(" 64-bit")
        assert "(!)" not in line

    def test_format_anomalous_row(self):
        """Test anomalous rows are marked."""
        line = format_info_row(
            InfoRow("abi_ver", "Uncommon ABI version", "3", anomalous=True)
        )

        assert line.startswith("Uncommon ABI version(!):")
        assert line.endswith(" 3")

    def test_format_span_line(self):
        """Test formatting an annotated span."""
        assert format_span_line(0, 15, 1, IDENTITY) == "00000000-0000000f   ident"
        assert format_span_line(64, 119, 0, PROGRAM_HEADER_ENTRY) == (
            "00000040-00000077 phdr [phdr hover]"
        )
        assert format_span_line(0, 3, 2, RangeType.field("magic")).endswith(
            "    magic [hover]"
        )


class TestWalkSpans:
    """Tests for walk_spans function."""

    def test_walk_matches_registered_ranges(self):
        """Test closing by end count recovers every registered range."""
        result = parse_bytes(create_test_elf())
        walked = walk_spans(result)

        assert Counter((start, end, t) for start, end, _, t in walked) == Counter(
            (start, start + length - 1, t)
            for start, length, t in result.ranges.spans()
        )

    def test_walk_depths(self):
        """Test nesting depth of the identity block fields."""
        result = parse_bytes(create_test_elf())
        depths = {(start, t): depth for start, _, depth, t in walk_spans(result)}

        assert depths[(0, IDENTITY)] == 1  # Inside the file header
        assert depths[(0, RangeType.field("magic"))] == 2
        assert depths[(64, PROGRAM_HEADER_ENTRY)] == 0


class TestCreateParser:
    """Tests for argument parser."""

    def test_parser_basic(self):
        """Test basic argument parsing."""
        parser = create_parser()
        args = parser.parse_args(["a.out", "libc.so.6"])

        assert args.files == ["a.out", "libc.so.6"]
        assert not args.json
        assert not args.spans
        assert not args.verbose

    def test_parser_flags(self):
        """Test flag variants."""
        parser = create_parser()
        args = parser.parse_args(["--json", "-s", "-v", "a.out"])

        assert args.json
        assert args.spans
        assert args.verbose
        assert args.files == ["a.out"]


class TestMain:
    """Tests for main CLI function."""

    def test_no_args_shows_usage(self, capsys):
        """Test that no arguments shows usage message."""
        result = main([])
        captured = capsys.readouterr()

        assert result == 0
        assert "ELF header viewer" in captured.out

    def test_process_valid_file(self, capsys):
        """Test processing a valid ELF file."""
        temp_path = write_temp(create_test_elf())
        try:
            result = main([temp_path])
            captured = capsys.readouterr()

            assert result == 0
            assert "Processing" in captured.out
            assert "Object class:" in captured.out
            assert "AArch64" in captured.out
            assert "(!)" not in captured.out
        finally:
            os.unlink(temp_path)

    def test_anomalous_marker(self, capsys):
        """Test anomalous values are marked in the output."""
        temp_path = write_temp(create_test_elf(abi_version=2))
        try:
            main([temp_path])
            captured = capsys.readouterr()

            assert "Uncommon ABI version(!):" in captured.out
        finally:
            os.unlink(temp_path)

    def test_spans_output(self, capsys):
        """Test --spans lists annotated ranges."""
        temp_path = write_temp(create_test_elf())
        try:
            result = main(["--spans", temp_path])
            captured = capsys.readouterr()

            assert result == 0
            assert "00000000-0000003f ehdr" in captured.out
            assert "00000040-00000077 phdr [phdr hover]" in captured.out
            assert "00000009-0000000f     pad [hover]" in captured.out
        finally:
            os.unlink(temp_path)

    def test_process_invalid_file(self, capsys):
        """Test processing an invalid file."""
        temp_path = write_temp(b"Not an ELF file at all")
        try:
            result = main([temp_path])
            captured = capsys.readouterr()

            assert result == 1  # Non-zero for failure
            assert "mismatched magic" in captured.err
        finally:
            os.unlink(temp_path)

    def test_json_output(self, capsys):
        """Test JSON output format."""
        temp_path = write_temp(create_test_elf())
        try:
            result = main(["--json", temp_path])
            captured = capsys.readouterr()

            data = json.loads(captured.out)
            assert result == 0
            assert isinstance(data, list)
            assert len(data) == 1
            assert data[0]["source_name"] == temp_path
            assert data[0]["size"] == 120
            assert "info" in data[0]
            assert "ranges" in data[0]
        finally:
            os.unlink(temp_path)

    def test_json_error(self, capsys):
        """Test JSON output for a failed file."""
        temp_path = write_temp(b"\x7fELF")
        try:
            result = main(["--json", temp_path])
            captured = capsys.readouterr()

            data = json.loads(captured.out)
            assert result == 1
            assert "e_ident" in data[0]["error"]
        finally:
            os.unlink(temp_path)

    def test_multiple_files(self, capsys):
        """Test processing multiple files."""
        files = [write_temp(create_test_elf()) for _ in range(2)]
        try:
            result = main(files)
            captured = capsys.readouterr()

            assert result == 0
            assert captured.out.count("Processing") == 2
        finally:
            for path in files:
                os.unlink(path)

    def test_nonexistent_file(self, capsys):
        """Test error handling for nonexistent file."""
        result = main(["/nonexistent/path/file"])
        captured = capsys.readouterr()

        assert result == 1
        assert "Failed to open file" in captured.err

    def test_version(self, capsys):
        """Test --version prints the package version."""
        with pytest.raises(SystemExit):
            main(["--version"])
        assert "elfview 1.0.0" in capsys.readouterr().out
