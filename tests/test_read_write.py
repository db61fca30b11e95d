"""Tests for byte-range read() and write()."""

import pytest

from vtfs import ErrorCode, Success


@pytest.fixture
def engine_with_file(engine):
    engine.create("/f", "file", 0o644).unwrap()
    return engine


class TestWrite:
    """Test write() splicing."""

    def test_write_then_read_round_trip(self, engine_with_file):
        engine = engine_with_file
        payload = b"Hello, World!"

        assert engine.write("/f", 0, payload) == Success(len(payload))
        assert engine.read("/f", 0, len(payload)).unwrap() == payload
        assert engine.stat("/f").unwrap().size == len(payload)

    def test_partial_overwrite_preserves_prefix_and_suffix(self, engine_with_file):
        """Writing 'xy' at 1 over 'ABCDE' yields 'AxyDE'."""
        engine = engine_with_file
        engine.write("/f", 0, b"ABCDE").unwrap()

        engine.write("/f", 1, b"xy").unwrap()

        assert engine.read("/f").unwrap() == b"AxyDE"
        assert engine.stat("/f").unwrap().size == 5

    def test_overwrite_past_end_extends(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, b"ABCDE").unwrap()

        engine.write("/f", 3, b"xyz").unwrap()

        assert engine.read("/f").unwrap() == b"ABCxyz"

    def test_write_beyond_end_zero_fills_gap(self, engine_with_file):
        """Bytes between the old end and the write offset read as zeros."""
        engine = engine_with_file
        engine.write("/f", 0, b"ab").unwrap()

        engine.write("/f", 6, b"cd").unwrap()

        assert engine.stat("/f").unwrap().size == 8
        assert engine.read("/f", 2, 4).unwrap() == b"\x00" * 4
        assert engine.read("/f").unwrap() == b"ab\x00\x00\x00\x00cd"

    def test_write_at_offset_into_empty_file(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 3, b"z").unwrap()
        assert engine.read("/f").unwrap() == b"\x00\x00\x00z"

    def test_zero_offset_shorter_write_keeps_tail(self, engine_with_file):
        """Overwriting at 0 with fewer bytes does not truncate."""
        engine = engine_with_file
        engine.write("/f", 0, b"123456").unwrap()
        engine.write("/f", 0, b"ab").unwrap()
        assert engine.read("/f").unwrap() == b"ab3456"

    def test_empty_write(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, b"abc").unwrap()
        assert engine.write("/f", 1, b"") == Success(0)
        assert engine.read("/f").unwrap() == b"abc"

    def test_accepts_bytearray_and_memoryview(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, bytearray(b"abc")).unwrap()
        engine.write("/f", 3, memoryview(b"def")).unwrap()
        assert engine.read("/f").unwrap() == b"abcdef"

    def test_updates_times(self, engine_with_file, clock):
        engine = engine_with_file
        created = engine.stat("/f").unwrap()
        clock.advance(42)

        engine.write("/f", 0, b"x").unwrap()

        st = engine.stat("/f").unwrap()
        assert st.mtime == st.ctime == int(clock.now)
        assert st.atime == created.atime

    def test_missing_file(self, engine):
        assert engine.write("/nope", 0, b"x").code is ErrorCode.NOT_FOUND

    def test_directory(self, engine):
        engine.create("/d", "dir", 0o755).unwrap()
        assert engine.write("/d", 0, b"x").code is ErrorCode.IS_DIRECTORY

    def test_negative_offset(self, engine_with_file):
        result = engine_with_file.write("/f", -1, b"x")
        assert result.code is ErrorCode.INVALID_ARGUMENT

    def test_text_is_rejected(self, engine_with_file):
        result = engine_with_file.write("/f", 0, "text")
        assert result.code is ErrorCode.INVALID_ARGUMENT

    @pytest.mark.parametrize("offset", ["0", 1.5, None, True])
    def test_non_integer_offset(self, engine_with_file, offset):
        """A non-int offset is InvalidArgument, not a TypeError."""
        result = engine_with_file.write("/f", offset, b"x")
        assert result.code is ErrorCode.INVALID_ARGUMENT
        assert engine_with_file.stat("/f").unwrap().size == 0


class TestRead:
    """Test read() ranges and access time."""

    def test_read_empty_file(self, engine_with_file):
        assert engine_with_file.read("/f", 0).unwrap() == b""

    def test_read_sub_range(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, b"0123456789").unwrap()

        assert engine.read("/f", 2, 3).unwrap() == b"234"
        assert engine.read("/f", 7).unwrap() == b"789"

    def test_size_clamped_to_end(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, b"abc").unwrap()
        assert engine.read("/f", 1, 100).unwrap() == b"bc"

    def test_offset_at_or_past_end_is_empty(self, engine_with_file):
        """Reading past end of file is not an error."""
        engine = engine_with_file
        engine.write("/f", 0, b"abc").unwrap()

        assert engine.read("/f", 3) == Success(b"")
        assert engine.read("/f", 50, 10) == Success(b"")

    def test_zero_size(self, engine_with_file):
        engine = engine_with_file
        engine.write("/f", 0, b"abc").unwrap()
        assert engine.read("/f", 0, 0).unwrap() == b""

    def test_read_updates_atime(self, engine_with_file, clock):
        engine = engine_with_file
        engine.write("/f", 0, b"abc").unwrap()
        before = engine.stat("/f").unwrap()
        clock.advance(7)

        engine.read("/f", 0, 1).unwrap()

        after = engine.stat("/f").unwrap()
        assert after.atime == int(clock.now)
        assert after.mtime == before.mtime
        assert after.ctime == before.ctime

    def test_read_past_end_still_updates_atime(self, engine_with_file, clock):
        """Out-of-range and empty-file reads count as accesses."""
        engine = engine_with_file
        clock.advance(3)
        engine.read("/f", 10).unwrap()
        assert engine.stat("/f").unwrap().atime == int(clock.now)

    def test_read_updates_atime_on_every_link(self, engine_with_file, clock):
        engine = engine_with_file
        engine.link("/f", "/g").unwrap()
        clock.advance(9)

        engine.read("/g").unwrap()

        assert engine.stat("/f").unwrap().atime == int(clock.now)

    def test_missing_file(self, engine):
        assert engine.read("/nope", 0).code is ErrorCode.NOT_FOUND

    def test_directory(self, engine):
        assert engine.read("/", 0).code is ErrorCode.IS_DIRECTORY

    @pytest.mark.parametrize("offset, size", [(-1, None), (0, -5)])
    def test_negative_arguments(self, engine_with_file, offset, size):
        result = engine_with_file.read("/f", offset, size)
        assert result.code is ErrorCode.INVALID_ARGUMENT

    @pytest.mark.parametrize(
        "offset, size", [("1", None), (1.5, None), (None, None), (True, None), (0, "2"), (0, 2.0)]
    )
    def test_non_integer_arguments(self, engine_with_file, clock, offset, size):
        """Non-int offsets and sizes are rejected before the file is touched."""
        engine = engine_with_file
        before = engine.stat("/f").unwrap().atime
        clock.advance(5)

        result = engine.read("/f", offset, size)

        assert result.code is ErrorCode.INVALID_ARGUMENT
        assert result.path == "/f"
        assert engine.stat("/f").unwrap().atime == before
