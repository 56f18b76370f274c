"""Low-level TIFF building blocks: tag ids, field types and IFD entries."""

from __future__ import annotations

import enum
import math
import struct
import sys
from dataclasses import dataclass
from typing import Optional

HEADER_SIZE = 8
"""Size in bytes of the classic TIFF file header."""

_FLT_MANT_DIG = 24
_FLT_MAX_EXP = 128

# Byte size per field type; types beyond the table fall back to entry 0.
_TYPE_SIZES = (1, 1, 1, 2, 4, 8, 1, 1, 2, 4, 8, 4, 8, 4)

# struct byte-order prefix, keyed by "is big endian".
_BYTE_ORDER = {True: ">", False: "<"}


class Tag(enum.IntEnum):
    """TIFF and DNG tag identifiers."""

    SUB_FILETYPE = 254
    IMAGE_WIDTH = 256
    IMAGE_LENGTH = 257
    BITS_PER_SAMPLE = 258
    COMPRESSION = 259
    PHOTOMETRIC = 262
    IMAGE_DESCRIPTION = 270
    STRIP_OFFSET = 273
    ORIENTATION = 274
    SAMPLES_PER_PIXEL = 277
    ROWS_PER_STRIP = 278
    STRIP_BYTE_COUNTS = 279
    XRESOLUTION = 282
    YRESOLUTION = 283
    PLANAR_CONFIG = 284
    RESOLUTION_UNIT = 296
    SAMPLE_FORMAT = 339

    CFA_REPEAT_PATTERN_DIM = 33421
    CFA_PATTERN = 33422

    CHROMA_BLUR_RADIUS = 50703
    DNG_VERSION = 50706
    DNG_BACKWARD_VERSION = 50707
    BLACK_LEVEL = 50714
    WHITE_LEVEL = 50717
    COLOR_MATRIX1 = 50721
    COLOR_MATRIX2 = 50722
    ACTIVE_AREA = 50829
    EXTRA_CAMERA_PROFILES = 50933
    AS_SHOT_PROFILE_NAME = 50934
    PROFILE_NAME = 50936
    FORWARD_MATRIX1 = 50964
    FORWARD_MATRIX2 = 50965
    DEFAULT_BLACK_RENDER = 51110


class DataType(enum.IntEnum):
    """TIFF field data types."""

    NOTYPE = 0
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    SBYTE = 6
    UNDEFINED = 7
    SSHORT = 8
    SLONG = 9
    SRATIONAL = 10
    FLOAT = 11
    DOUBLE = 12
    IFD = 13
    LONG8 = 16
    SLONG8 = 17
    IFD8 = 18


class SubfileType(enum.IntFlag):
    """Bits of the NewSubfileType field."""

    REDUCED_IMAGE = 1
    PAGE = 2
    MASK = 4


class PlanarConfig(enum.IntEnum):
    CONTIG = 1
    SEPARATE = 2


class Compression(enum.IntEnum):
    NONE = 1


class Orientation(enum.IntEnum):
    TOP_LEFT = 1
    TOP_RIGHT = 2
    BOT_RIGHT = 3
    BOT_LEFT = 4
    LEFT_TOP = 5
    RIGHT_TOP = 6
    RIGHT_BOT = 7
    LEFT_BOT = 8


class ResolutionUnit(enum.IntEnum):
    NONE = 1
    INCH = 2
    CENTIMETER = 2


class Photometric(enum.IntEnum):
    WHITE_IS_ZERO = 0
    BLACK_IS_ZERO = 1
    RGB = 2
    CFA = 32893
    LINEAR_RAW = 34892


class SampleFormat(enum.IntEnum):
    UINT = 1
    INT = 2
    IEEEFP = 3


def type_size(data_type: int) -> int:
    """Return the size in bytes of one value of ``data_type``."""
    index = int(data_type)
    return _TYPE_SIZES[index] if 0 <= index < len(_TYPE_SIZES) else _TYPE_SIZES[0]


def double_to_rational(x: float) -> tuple[float, float]:
    """Express ``x`` as a ``(numerator, denominator)`` pair.

    The mantissa is reduced to single precision so the pair fits TIFF's
    32-bit rationals. Raises ``ValueError`` when ``x`` is not finite or
    underflows the representable range.
    """
    if not math.isfinite(x):
        raise ValueError(f"cannot represent {x!r} as a rational")

    mantissa, expo = math.frexp(x)
    numerator = mantissa * 2.0**_FLT_MANT_DIG
    denominator = 1.0
    expo -= _FLT_MANT_DIG
    if expo > 0:
        numerator *= 2.0**expo
    elif expo < 0:
        expo = -expo
        limit = _FLT_MAX_EXP - 1
        if expo >= limit:
            numerator /= 2.0 ** (expo - limit)
            denominator *= 2.0**limit
            if abs(numerator) < 1.0:
                raise ValueError(f"cannot represent {x!r} as a rational")
            return numerator, denominator
        denominator *= 2.0**expo

    eps = sys.float_info.epsilon
    while (
        abs(numerator) > 0.0
        and abs(math.fmod(numerator, 2)) < eps
        and abs(math.fmod(denominator, 2)) < eps
    ):
        numerator /= 2.0
        denominator /= 2.0
    return numerator, denominator


@dataclass
class IFDEntry:
    """One 12-byte IFD entry.

    Values of at most four bytes are held inline in ``value`` (already in
    file byte order); larger values live in the data area at ``offset``.
    """

    tag: int
    data_type: DataType
    count: int
    value: Optional[bytes] = None
    offset: Optional[int] = None

    @property
    def byte_size(self) -> int:
        """Total size of the entry's values in bytes."""
        return self.count * type_size(self.data_type)

    def encode(self, big_endian: bool, data_base_offset: int = 0) -> bytes:
        """Serialise the entry, shifting any data offset by ``data_base_offset``."""
        order = _BYTE_ORDER[bool(big_endian)]
        head = struct.pack(order + "HHI", self.tag, int(self.data_type), self.count)
        if self.offset is not None:
            return head + struct.pack(order + "I", self.offset + data_base_offset)
        value = self.value or b""
        return head + value.ljust(4, b"\x00")


def build_entry(
    tag: int,
    data_type: int,
    count: int,
    payload: bytes,
    data: Optional[bytearray],
) -> IFDEntry:
    """Build an IFD entry for ``payload`` (bytes already in file byte order).

    Payloads longer than four bytes are appended to ``data`` and referenced by
    offset (relative to the end of the file header).
    """
    dtype = DataType(data_type)
    length = count * type_size(dtype)
    if len(payload) != length:
        raise ValueError(
            f"payload holds {len(payload)} bytes, expected {length} for tag {tag}"
        )
    if length > 4:
        if data is None:
            raise ValueError(f"tag {tag} needs a data area for {length} bytes")
        offset = len(data) + HEADER_SIZE
        data.extend(payload)
        return IFDEntry(int(tag), dtype, count, offset=offset)
    if length not in (1, 2, 4):
        raise ValueError(f"unsupported inline value size {length} for tag {tag}")
    return IFDEntry(int(tag), dtype, count, value=bytes(payload))


def tiff_header(big_endian: bool, ifd_offset: int) -> bytes:
    """Return the 8-byte TIFF header pointing at the first IFD."""
    magic = b"MM\x00\x2a" if big_endian else b"II\x2a\x00"
    return magic + struct.pack(_BYTE_ORDER[bool(big_endian)] + "I", ifd_offset)