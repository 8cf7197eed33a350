"""
Test suite for the batch input and output files.
"""

import pytest

from payout_batcher.state.files import LineSink, LineSource


class TestLineSource:
    """Tests for reading envelope lines."""

    def test_yields_stripped_lines_with_numbers(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("  AAA  \nBBB\r\n")

        with LineSource(path) as source:
            assert list(source) == [(1, "AAA"), (2, "BBB")]

    def test_final_fragment_without_newline_is_read(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("AAA\nBBB")

        assert list(LineSource(path)) == [(1, "AAA"), (2, "BBB")]

    def test_trailing_blank_lines_end_batch(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("AAA\n\n   \n")

        assert list(LineSource(path)) == [(1, "AAA")]

    def test_inner_blank_line_is_yielded(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("AAA\n\nBBB\n")

        assert list(LineSource(path)) == [(1, "AAA"), (2, ""), (3, "BBB")]

    def test_empty_file(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_text("")

        assert list(LineSource(path)) == []

    def test_undecodable_bytes_are_replaced(self, tmp_path):
        path = tmp_path / "in.txt"
        path.write_bytes(b"\xff\xfe garbage\nAAA\n")

        lines = list(LineSource(path))

        assert lines[0][0] == 1
        assert "\ufffd" in lines[0][1]
        assert lines[1] == (2, "AAA")

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(OSError):
            LineSource(tmp_path / "missing.txt").open()


class TestLineSink:
    """Tests for writing signed envelopes."""

    def test_writes_one_line_per_envelope(self, tmp_path):
        path = tmp_path / "out.txt"

        with LineSink(path) as sink:
            sink.write("AAA")
            sink.write("BBB")

        assert path.read_text() == "AAA\nBBB\n"
        assert sink.lines_written == 2

    def test_truncates_existing_file(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_text("stale\n")

        with LineSink(path):
            pass

        assert path.read_text() == ""

    def test_write_requires_open_sink(self, tmp_path):
        sink = LineSink(tmp_path / "out.txt")

        with pytest.raises(RuntimeError, match="not open"):
            sink.write("AAA")

    def test_close_is_idempotent(self, tmp_path):
        sink = LineSink(tmp_path / "out.txt").open()

        sink.close()
        sink.close()
