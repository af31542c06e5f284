"""Tests for the EXIF payload view (header, IFD entries, format sizes)."""

import pytest

from recoverymap.errors import MetadataError
from recoverymap.exif import (
    EXIF_IFD_POINTER_TAG,
    FORMAT_SIZES,
    detect_byte_order,
    format_size,
    read_directory,
    read_exif_header,
    read_exif_sub_ifd,
    read_tag_value_bytes,
)
from tests.conftest import CAMERA_IFD0, build_exif


class TestFormatSize:
    @pytest.mark.parametrize('fmt,size', [
        (1, 1), (2, 1), (3, 2), (4, 4), (5, 8), (6, 1),
        (7, 1), (8, 2), (9, 4), (10, 8), (11, 4), (12, 8),
    ])
    def test_standard_formats(self, fmt, size):
        assert format_size(fmt) == size

    def test_table_has_twelve_formats(self):
        assert sorted(FORMAT_SIZES) == list(range(1, 13))

    @pytest.mark.parametrize('fmt', [0, 13, 16, 0xFFFF])
    def test_unknown_format(self, fmt):
        with pytest.raises(MetadataError, match='unknown EXIF data format'):
            format_size(fmt)


class TestByteOrder:
    def test_little_endian(self):
        assert detect_byte_order(build_exif([], endian='<')) is False

    def test_big_endian(self):
        assert detect_byte_order(build_exif([], endian='>')) is True

    def test_unsupported_marker(self):
        data = bytearray(build_exif([]))
        data[6:8] = b'XX'
        with pytest.raises(MetadataError, match='byte-order'):
            detect_byte_order(bytes(data))

    def test_truncated(self):
        with pytest.raises(MetadataError, match='truncated'):
            detect_byte_order(b'Exif\x00\x00II')


class TestReadHeader:
    def test_valid(self):
        header = read_exif_header(build_exif([(274, 3, 1, 1)]))
        assert header is not None
        assert header.big_endian is False
        assert header.first_ifd_offset == 8
        assert header.endian == '<'

    def test_big_endian(self):
        header = read_exif_header(build_exif([(274, 3, 1, 1)], endian='>'))
        assert header.big_endian is True

    def test_missing_identifier(self):
        assert read_exif_header(build_exif([])[6:]) is None

    def test_wrong_magic(self):
        data = bytearray(build_exif([]))
        data[8] = 43
        assert read_exif_header(bytes(data)) is None

    def test_garbage(self):
        assert read_exif_header(b'NOT EXIF AT ALL!!') is None


class TestReadDirectory:
    def test_entries(self):
        data = build_exif(CAMERA_IFD0)
        entries = read_directory(data, 14, False)
        assert [e.tag_id for e in entries] == [271, 272, 274, 282, 296]
        assert entries[0].tag_name == 'Make'
        assert entries[0].format_name == 'ASCII'
        assert entries[0].entry_position == 16
        assert entries[1].entry_position == 28

    def test_inline_detection(self):
        entries = read_directory(build_exif(CAMERA_IFD0), 14, False)
        inline = {e.tag_id: e.is_inline for e in entries}
        assert inline == {271: False, 272: False, 274: True, 282: False, 296: True}

    def test_string_value(self):
        data = build_exif(CAMERA_IFD0)
        make = read_directory(data, 14, False)[0]
        assert read_tag_value_bytes(data, make) == b'Canon\x00'

    def test_inline_value_bytes(self):
        data = build_exif([(274, 3, 1, 6)])
        entry = read_directory(data, 14, False)[0]
        assert read_tag_value_bytes(data, entry) == b'\x06\x00'

    def test_big_endian_entries(self):
        data = build_exif([(0x0102, 3, 1, 8), (271, 2, 6, b'Canon\x00')], endian='>')
        entries = read_directory(data, 14, True)
        assert [e.tag_id for e in entries] == [0x0102, 271]
        assert read_tag_value_bytes(data, entries[1]) == b'Canon\x00'

    def test_truncated_entries(self):
        data = build_exif(CAMERA_IFD0)[:30]
        with pytest.raises(MetadataError):
            read_directory(data, 14, False)

    def test_implausible_count(self):
        data = bytearray(build_exif([]))
        data[14:16] = b'\xff\xff'
        with pytest.raises(MetadataError, match='implausible'):
            read_directory(bytes(data), 14, False)

    def test_value_past_end(self):
        data = build_exif([(270, 2, 100, b'short\x00')])
        entry = read_directory(data, 14, False)[0]
        with pytest.raises(MetadataError, match='past end'):
            read_tag_value_bytes(data, entry)


class TestSubDirectory:
    def test_sub_ifd_found(self, camera_exif):
        entries = read_directory(camera_exif, 14, False)
        assert entries[-1].tag_id == EXIF_IFD_POINTER_TAG
        sub = read_exif_sub_ifd(camera_exif, False, entries)
        assert [e.tag_id for e in sub] == [33434, 36864, 36867, 40962]
        date = [e for e in sub if e.tag_id == 36867][0]
        assert read_tag_value_bytes(camera_exif, date) == b'2024:06:15 10:30:00\x00'

    def test_no_sub_ifd(self):
        data = build_exif(CAMERA_IFD0)
        assert read_exif_sub_ifd(data, False, read_directory(data, 14, False)) is None

    def test_zero_pointer(self):
        data = build_exif([(EXIF_IFD_POINTER_TAG, 4, 1, 0)])
        assert read_exif_sub_ifd(data, False, read_directory(data, 14, False)) is None
