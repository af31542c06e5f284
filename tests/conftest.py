"""Shared test fixtures -- synthetic EXIF payload, XMP and JPEG generators."""

import io
import struct

import pytest
from PIL import Image

from recoverymap.models import (
    Chromaticity,
    GainMapMetadata,
    Hdr10Metadata,
    St2086Metadata,
    TransferFunction,
)

EXIF_ID = b'Exif\x00\x00'
EXIF_POINTER = 0x8769


def ifd_size(entries):
    """Bytes taken by an IFD: count + entries + next pointer + out-of-line data."""
    return 2 + 12 * len(entries) + 4 + sum(
        len(v) for _, _, _, v in entries if isinstance(v, bytes))


def pack_ifd(entries, endian, ifd_offset, next_ifd=0):
    """Serialize one IFD located at TIFF offset ifd_offset.

    Args:
        entries: List of (tag_id, format, count, value_or_bytes) tuples.
            For inline values (<=4 bytes), pass an int.
            For out-of-line values, pass bytes; they are laid out right
            after the IFD in order.
    """
    data_start = ifd_offset + 2 + 12 * len(entries) + 4
    ifd_bytes = struct.pack(endian + 'H', len(entries))
    data_bytes = b''
    for tag_id, fmt, count, value in entries:
        ifd_bytes += struct.pack(endian + 'HHI', tag_id, fmt, count)
        if isinstance(value, bytes):
            ifd_bytes += struct.pack(endian + 'I', data_start + len(data_bytes))
            data_bytes += value
        else:
            ifd_bytes += struct.pack(endian + 'I', value)
    ifd_bytes += struct.pack(endian + 'I', next_ifd)
    return ifd_bytes + data_bytes


def build_exif(entries, endian='<', sub_ifd_entries=None, extra_data=b''):
    """Build an EXIF APP1 payload ("Exif\\0\\0" + TIFF) in memory.

    When sub_ifd_entries is given, an ExifIFDPointer (LONG) entry is
    appended to IFD0 and the sub-IFD is written after IFD0's data.

    Returns:
        bytes: Complete EXIF payload.
    """
    bo = b'II' if endian == '<' else b'MM'
    main = list(entries)
    sub_ifd_offset = None
    if sub_ifd_entries is not None:
        main.append((EXIF_POINTER, 4, 1, 0))
        sub_ifd_offset = 8 + ifd_size(main)
        main[-1] = (EXIF_POINTER, 4, 1, sub_ifd_offset)

    tiff = bo + struct.pack(endian + 'H', 42) + struct.pack(endian + 'I', 8)
    tiff += pack_ifd(main, endian, 8)
    if sub_ifd_entries is not None:
        tiff += pack_ifd(sub_ifd_entries, endian, sub_ifd_offset)
    return EXIF_ID + tiff + extra_data


def build_xmp_payload(xml, signature=b'http://ns.adobe.com/xap/1.0/\x00'):
    """Prefix XML text with the XMP APP1 signature."""
    if isinstance(xml, str):
        xml = xml.encode('utf-8')
    return signature + xml


def build_jpeg(*app1_payloads, size=(16, 16)):
    """Encode a small JPEG with Pillow and splice APP1 segments after SOI."""
    buf = io.BytesIO()
    Image.new('RGB', size, (200, 120, 40)).save(buf, format='JPEG', quality=90)
    jpeg = buf.getvalue()
    segments = b''.join(
        b'\xff\xe1' + struct.pack('>H', len(p) + 2) + p for p in app1_payloads)
    return jpeg[:2] + segments + jpeg[2:]


def item_xml(attributes, second_item=''):
    """Minimal GContainer document whose first item carries attributes."""
    return (
        '<x:xmpmeta xmlns:x="adobe:ns:meta/">'
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">'
        '<rdf:Description'
        ' xmlns:GContainer="http://ns.google.com/photos/1.0/container/"'
        ' xmlns:RecoveryMap="http://ns.google.com/photos/1.0/recoverymap/">'
        '<GContainer:Directory><rdf:Seq>'
        f'<rdf:li><GContainer:Item {attributes}/></rdf:li>'
        f'{second_item}'
        '</rdf:Seq></GContainer:Directory>'
        '</rdf:Description></rdf:RDF></x:xmpmeta>'
    )


# Typical IFD0 of a camera JPEG: strings and rationals out-of-line,
# shorts inline.
CAMERA_IFD0 = [
    (271, 2, 6, b'Canon\x00'),                          # Make
    (272, 2, 7, b'EOS R5\x00'),                         # Model
    (274, 3, 1, 1),                                     # Orientation
    (282, 5, 1, struct.pack('<II', 72, 1)),             # XResolution
    (296, 3, 1, 2),                                     # ResolutionUnit
]

CAMERA_EXIF_IFD = [
    (33434, 5, 1, struct.pack('<II', 1, 250)),          # ExposureTime
    (36864, 7, 4, 0x31333230),                          # ExifVersion "0231"
    (36867, 2, 20, b'2024:06:15 10:30:00\x00'),         # DateTimeOriginal
    (40962, 4, 1, 4000),                                # PixelXDimension
]


@pytest.fixture
def camera_exif():
    """Little-endian payload with an EXIF sub-IFD."""
    return build_exif(CAMERA_IFD0, sub_ifd_entries=CAMERA_EXIF_IFD)


@pytest.fixture
def sdr_metadata():
    return GainMapMetadata(
        version=1,
        range_scaling_factor=4.0,
        transfer_function=TransferFunction.HLG,
    )


@pytest.fixture
def hdr10():
    return Hdr10Metadata(
        max_fall=400,
        max_cll=1000,
        st2086=St2086Metadata(
            max_luminance=1000.0,
            min_luminance=0.0001,
            red_primary=Chromaticity(0.708, 0.292),
            green_primary=Chromaticity(0.17, 0.797),
            blue_primary=Chromaticity(0.131, 0.046),
            white_point=Chromaticity(0.3127, 0.329),
        ),
    )


@pytest.fixture
def pq_metadata(hdr10):
    return GainMapMetadata(
        version=1,
        range_scaling_factor=10.5,
        transfer_function=TransferFunction.PQ,
        hdr10_metadata=hdr10,
    )
