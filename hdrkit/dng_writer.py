"""Writer for simple uncompressed TIFF/DNG files with one strip per image.

The layout places the header first, then every image's auxiliary tag data
and pixel strip, and finally the IFDs, so every offset is known before the
directories are written.
"""

from __future__ import annotations

import struct
import sys
from array import array
from typing import BinaryIO, Iterable, Sequence

from .tiff_format import (
    HEADER_SIZE,
    Compression,
    DataType,
    IFDEntry,
    Orientation,
    Photometric,
    PlanarConfig,
    ResolutionUnit,
    SampleFormat,
    SubfileType,
    Tag,
    build_entry,
    double_to_rational,
    tiff_header,
)

_MAX_DESCRIPTION = 1024 * 1024
_SWAP_CODES = {16: "H", 32: "I", 64: "Q"}
_BYTE_ORDER = {True: ">", False: "<"}


def _rational_pair(value: float) -> tuple[int, int]:
    numerator, denominator = double_to_rational(value)
    num, den = int(numerator), int(denominator)
    if not (0 <= num <= 0xFFFFFFFF and 0 < den <= 0xFFFFFFFF):
        raise ValueError(f"{value!r} does not fit an unsigned 32-bit rational")
    return num, den


class DNGImage:
    """Tags and pixel data of one image, accumulated by the ``set_*`` methods.

    Pixel data handed to :meth:`set_image_data` is taken to be in host byte
    order; it is converted to the file's byte order when written.
    """

    def __init__(self, big_endian: bool = True) -> None:
        self.big_endian = big_endian
        self.samples_per_pixel = 0
        self.bits_per_sample = 0
        self.strip_offset = 0
        self.strip_bytes = 0
        self._data = bytearray()
        self._entries: list[IFDEntry] = []

    # -- helpers -----------------------------------------------------------

    def _pack(self, fmt: str, values: Sequence[int]) -> bytes:
        order = _BYTE_ORDER[bool(self.big_endian)]
        return struct.pack(order + fmt * len(values), *values)

    def _add(
        self,
        tag: int,
        data_type: DataType,
        fmt: str,
        values: Sequence[int],
        use_data_area: bool = True,
    ) -> None:
        try:
            payload = self._pack(fmt, values)
        except struct.error as exc:
            raise ValueError(f"invalid value for tag {int(tag)}: {exc}") from exc
        entry = build_entry(
            tag,
            data_type,
            len(values),
            payload,
            self._data if use_data_area else None,
        )
        self._entries.append(entry)

    def _add_rationals(self, tag: int, values: Iterable[float]) -> None:
        flat: list[int] = []
        for value in values:
            flat.extend(_rational_pair(value))
        payload = self._pack("I", flat)
        self._entries.append(
            build_entry(tag, DataType.RATIONAL, len(flat) // 2, payload, self._data)
        )

    def _check_per_sample(self, values: Sequence[int], what: str) -> int:
        if not values or len(values) != self.samples_per_pixel:
            raise ValueError(
                f"set_samples_per_pixel() must be called before {what}, "
                "with one value per sample"
            )
        first = values[0]
        if any(v != first for v in values):
            raise ValueError(f"{what} must be the same for all samples")
        return first

    # -- tag setters -------------------------------------------------------

    def set_subfile_type(
        self, reduced_image: bool = False, page: bool = False, mask: bool = False
    ) -> None:
        bits = SubfileType(0)
        if reduced_image:
            bits |= SubfileType.REDUCED_IMAGE
        if page:
            bits |= SubfileType.PAGE
        if mask:
            bits |= SubfileType.MASK
        self._add(Tag.SUB_FILETYPE, DataType.LONG, "I", [int(bits)])

    def set_image_width(self, value: int) -> None:
        self._add(Tag.IMAGE_WIDTH, DataType.LONG, "I", [value])

    def set_image_length(self, value: int) -> None:
        self._add(Tag.IMAGE_LENGTH, DataType.LONG, "I", [value])

    def set_rows_per_strip(self, value: int) -> None:
        if value == 0:
            raise ValueError("rows per strip must be positive")
        self._add(Tag.ROWS_PER_STRIP, DataType.LONG, "I", [value])

    def set_samples_per_pixel(self, value: int) -> None:
        if value > 4:
            raise ValueError("at most 4 samples per pixel are supported")
        self._add(Tag.SAMPLES_PER_PIXEL, DataType.SHORT, "H", [value])
        self.samples_per_pixel = value

    def set_bits_per_sample(self, values: Sequence[int]) -> None:
        values = list(values)
        bps = self._check_per_sample(values, "set_bits_per_sample()")
        self._add(Tag.BITS_PER_SAMPLE, DataType.SHORT, "H", values)
        self.bits_per_sample = bps

    def set_photometric(self, value: int) -> None:
        allowed = {
            Photometric.LINEAR_RAW,
            Photometric.RGB,
            Photometric.WHITE_IS_ZERO,
            Photometric.BLACK_IS_ZERO,
        }
        if value not in allowed:
            raise ValueError(f"unsupported photometric interpretation {value}")
        self._add(Tag.PHOTOMETRIC, DataType.SHORT, "H", [int(value)])

    def set_planar_config(self, value: int) -> None:
        if value not in (PlanarConfig.CONTIG, PlanarConfig.SEPARATE):
            raise ValueError(f"invalid planar configuration {value}")
        self._add(Tag.PLANAR_CONFIG, DataType.SHORT, "H", [int(value)])

    def set_orientation(self, value: int) -> None:
        if value not in set(Orientation):
            raise ValueError(f"invalid orientation {value}")
        self._add(Tag.ORIENTATION, DataType.SHORT, "H", [int(value)])

    def set_compression(self, value: int) -> None:
        if value != Compression.NONE:
            raise ValueError(f"unsupported compression {value}")
        self._add(Tag.COMPRESSION, DataType.SHORT, "H", [int(value)])

    def set_sample_format(self, values: Sequence[int]) -> None:
        values = list(values)
        fmt = self._check_per_sample(values, "set_sample_format()")
        if fmt not in set(SampleFormat):
            raise ValueError(f"invalid sample format {fmt}")
        self._add(Tag.SAMPLE_FORMAT, DataType.SHORT, "H", [int(v) for v in values])

    def set_x_resolution(self, value: float) -> None:
        self._add_rationals(Tag.XRESOLUTION, [value])

    def set_y_resolution(self, value: float) -> None:
        self._add_rationals(Tag.YRESOLUTION, [value])

    def set_resolution_unit(self, value: int) -> None:
        if value not in set(ResolutionUnit):
            raise ValueError(f"invalid resolution unit {value}")
        self._add(Tag.RESOLUTION_UNIT, DataType.SHORT, "H", [int(value)])

    def set_image_description(self, text: str) -> None:
        payload = text.encode("ascii") + b"\x00"
        if len(payload) < 2:
            raise ValueError("image description must not be empty")
        if len(payload) > _MAX_DESCRIPTION:
            raise ValueError("image description is too large")
        self._entries.append(
            build_entry(
                Tag.IMAGE_DESCRIPTION, DataType.ASCII, len(payload), payload, self._data
            )
        )

    def set_active_area(self, values: Sequence[int]) -> None:
        values = list(values)
        if len(values) != 4:
            raise ValueError("active area needs exactly 4 values")
        self._add(Tag.ACTIVE_AREA, DataType.LONG, "I", values)

    def set_black_level_rational(self, values: Sequence[float]) -> None:
        values = list(values)
        if not values or len(values) != self.samples_per_pixel:
            raise ValueError("black level needs one value per sample")
        self._add_rationals(Tag.BLACK_LEVEL, values)

    def set_white_level_rational(self, values: Sequence[float]) -> None:
        values = list(values)
        if not values or len(values) != self.samples_per_pixel:
            raise ValueError("white level needs one value per sample")
        self._add_rationals(Tag.WHITE_LEVEL, values)

    def set_image_data(self, data: bytes) -> None:
        """Append the pixel strip (host byte order) to the data area."""
        payload = bytes(data)
        if not payload:
            raise ValueError("image data must not be empty")
        self.strip_offset = len(self._data)
        self.strip_bytes = len(payload)
        self._data.extend(payload)
        # The strip offset tag itself is added when the IFD is written.
        self._add(
            Tag.STRIP_BYTE_COUNTS, DataType.LONG, "I", [len(payload)],
            use_data_area=False,
        )

    def set_custom_field_long(self, tag: int, value: int) -> None:
        self._add(tag, DataType.SLONG, "i", [value])

    def set_custom_field_ulong(self, tag: int, value: int) -> None:
        self._add(tag, DataType.LONG, "I", [value])

    # -- output ------------------------------------------------------------

    def data_size(self) -> int:
        """Size in bytes of the auxiliary data plus the pixel strip."""
        return len(self._data)

    def write_data(self, stream: BinaryIO) -> None:
        """Write the auxiliary data and the pixel strip in file byte order."""
        if not self._data:
            raise ValueError("empty IFD data and image data")
        if self.bits_per_sample == 0 or self.samples_per_pixel == 0:
            raise ValueError("both bits per sample and samples per pixel must be set")

        out = bytearray(self._data)
        swap = (sys.byteorder == "big") != self.big_endian
        code = _SWAP_CODES.get(self.bits_per_sample)
        if swap and code and self.strip_bytes:
            words = array(code)
            count = self.strip_bytes // words.itemsize
            start = self.strip_offset
            end = start + count * words.itemsize
            words.frombytes(bytes(out[start:end]))
            words.byteswap()
            out[start:end] = words.tobytes()
        stream.write(bytes(out))

    def write_ifd(
        self, stream: BinaryIO, data_base_offset: int, strip_offset: int
    ) -> None:
        """Write this image's IFD entries, without the next-IFD pointer."""
        if not self._entries:
            raise ValueError("no TIFF tags")
        strip_entry = IFDEntry(
            int(Tag.STRIP_OFFSET),
            DataType.LONG,
            1,
            value=self._pack("I", [strip_offset + HEADER_SIZE]),
        )
        entries = sorted([*self._entries, strip_entry], key=lambda e: e.tag)
        chunks = [self._pack("H", [len(entries)])]
        chunks.extend(e.encode(self.big_endian, data_base_offset) for e in entries)
        stream.write(b"".join(chunks))


class DNGWriter:
    """Collects images and writes them as one multi-IFD TIFF file."""

    def __init__(self, big_endian: bool = True) -> None:
        self.big_endian = big_endian
        self.images: list[DNGImage] = []

    def add_image(self, image: DNGImage) -> None:
        self.images.append(image)

    def write(self, stream: BinaryIO) -> None:
        """Write the whole file to ``stream``, which starts at file offset 0."""
        if not self.images:
            raise ValueError("no image added for writing")

        data_offsets: list[int] = []
        strip_offsets: list[int] = []
        data_len = 0
        for image in self.images:
            data_offsets.append(data_len)
            strip_offsets.append(data_len + image.strip_offset)
            data_len += image.data_size()

        stream.write(tiff_header(self.big_endian, HEADER_SIZE + data_len))
        for image in self.images:
            image.write_data(stream)

        position = HEADER_SIZE + data_len
        order = _BYTE_ORDER[bool(self.big_endian)]
        last = len(self.images) - 1
        for index, (image, data_off, strip_off) in enumerate(
            zip(self.images, data_offsets, strip_offsets)
        ):
            counter = _CountingStream(stream)
            image.write_ifd(counter, data_off, strip_off)
            position += counter.written
            next_ifd = 0 if index == last else position + 4
            stream.write(struct.pack(order + "I", next_ifd))
            position += 4

    def write_to_file(self, path) -> None:
        """Write the file to ``path``."""
        if not self.images:
            raise ValueError("no image added for writing")
        with open(path, "wb") as handle:
            self.write(handle)


class _CountingStream:
    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self.written = 0

    def write(self, data: bytes) -> int:
        self._stream.write(data)
        self.written += len(data)
        return len(data)