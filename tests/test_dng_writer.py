import io
import struct

import pytest

from hdrkit.dng_writer import DNGImage, DNGWriter
from hdrkit.tiff_format import (
    Compression,
    Photometric,
    PlanarConfig,
    ResolutionUnit,
    SampleFormat,
    Tag,
)


def _parse(buf):
    order = "<" if buf[:2] == b"II" else ">"
    (ifd_off,) = struct.unpack_from(order + "I", buf, 4)
    ifds = []
    while ifd_off:
        (n,) = struct.unpack_from(order + "H", buf, ifd_off)
        tags = []
        entries = {}
        for i in range(n):
            tag, typ, count, raw = struct.unpack_from(
                order + "HHI4s", buf, ifd_off + 2 + 12 * i
            )
            tags.append(tag)
            entries[tag] = (typ, count, raw)
        (ifd_off,) = struct.unpack_from(order + "I", buf, ifd_off + 2 + 12 * n)
        ifds.append((tags, entries))
    return order, ifds


def _long(order, raw):
    return struct.unpack(order + "I", raw)[0]


def _short(order, raw):
    return struct.unpack_from(order + "H", raw)[0]


def _make_image(big_endian, values, channels=1):
    image = DNGImage(big_endian)
    width = len(values) // channels
    image.set_image_width(width)
    image.set_image_length(1)
    image.set_rows_per_strip(1)
    image.set_samples_per_pixel(channels)
    image.set_bits_per_sample([32] * channels)
    image.set_planar_config(PlanarConfig.CONTIG)
    image.set_compression(Compression.NONE)
    image.set_photometric(
        Photometric.BLACK_IS_ZERO if channels == 1 else Photometric.RGB
    )
    image.set_x_resolution(1.0)
    image.set_y_resolution(1.0)
    image.set_resolution_unit(ResolutionUnit.NONE)
    image.set_sample_format([SampleFormat.IEEEFP] * channels)
    image.set_image_data(struct.pack("=%df" % len(values), *values))
    return image


def _write(*images, big_endian=False):
    writer = DNGWriter(big_endian)
    for image in images:
        writer.add_image(image)
    out = io.BytesIO()
    writer.write(out)
    return out.getvalue()


@pytest.mark.parametrize("big_endian", [False, True])
def test_header_magic_and_ifd_offset(big_endian):
    image = _make_image(big_endian, [0.5, 1.5])
    buf = _write(image, big_endian=big_endian)
    assert buf[:4] == (b"MM\x00\x2a" if big_endian else b"II\x2a\x00")
    order = ">" if big_endian else "<"
    assert struct.unpack_from(order + "I", buf, 4)[0] == 8 + image.data_size()


@pytest.mark.parametrize("big_endian", [False, True])
def test_pixel_data_round_trip(big_endian):
    values = [0.25, -3.0, 7.5]
    image = _make_image(big_endian, values)
    buf = _write(image, big_endian=big_endian)
    order, ifds = _parse(buf)
    assert len(ifds) == 1
    _, entries = ifds[0]
    offset = _long(order, entries[Tag.STRIP_OFFSET][2])
    nbytes = _long(order, entries[Tag.STRIP_BYTE_COUNTS][2])
    assert nbytes == 4 * len(values)
    decoded = struct.unpack_from(order + "%df" % len(values), buf, offset)
    assert list(decoded) == values


def test_tags_are_sorted_and_hold_values():
    image = _make_image(False, [1.0, 2.0, 3.0, 4.0])
    order, ifds = _parse(_write(image))
    tags, entries = ifds[0]
    assert tags == sorted(tags)
    assert _long(order, entries[Tag.IMAGE_WIDTH][2]) == 4
    assert _long(order, entries[Tag.IMAGE_LENGTH][2]) == 1
    assert _short(order, entries[Tag.SAMPLES_PER_PIXEL][2]) == 1
    assert _short(order, entries[Tag.SAMPLE_FORMAT][2]) == SampleFormat.IEEEFP
    assert _short(order, entries[Tag.PHOTOMETRIC][2]) == Photometric.BLACK_IS_ZERO


@pytest.mark.parametrize("big_endian", [False, True])
def test_multi_sample_values_live_in_data_area(big_endian):
    image = _make_image(big_endian, [1.0, 2.0, 3.0], channels=3)
    buf = _write(image, big_endian=big_endian)
    order, ifds = _parse(buf)
    _, entries = ifds[0]
    typ, count, raw = entries[Tag.BITS_PER_SAMPLE]
    assert count == 3
    offset = _long(order, raw)
    assert list(struct.unpack_from(order + "3H", buf, offset)) == [32, 32, 32]


def test_resolution_rational_equals_value():
    image = _make_image(False, [1.0])
    image.set_custom_field_ulong(40000, 9)
    buf = _write(image)
    order, ifds = _parse(buf)
    _, entries = ifds[0]
    offset = _long(order, entries[Tag.XRESOLUTION][2])
    num, den = struct.unpack_from(order + "2I", buf, offset)
    assert num / den == 1.0
    assert _long(order, entries[40000][2]) == 9


def test_two_images_chain_ifds():
    first = _make_image(False, [1.0, 2.0])
    second = _make_image(False, [5.0, 6.0, 7.0])
    buf = _write(first, second)
    order, ifds = _parse(buf)
    assert len(ifds) == 2
    _, entries = ifds[1]
    offset = _long(order, entries[Tag.STRIP_OFFSET][2])
    assert list(struct.unpack_from(order + "3f", buf, offset)) == [5.0, 6.0, 7.0]


def test_write_to_file_matches_stream(tmp_path):
    image = _make_image(True, [0.5, 0.75])
    writer = DNGWriter(True)
    writer.add_image(image)
    path = tmp_path / "out.tif"
    writer.write_to_file(path)
    out = io.BytesIO()
    writer.write(out)
    assert path.read_bytes() == out.getvalue()


def test_image_description_stored():
    image = _make_image(False, [1.0])
    image.set_image_description("a float image")
    buf = _write(image)
    order, ifds = _parse(buf)
    _, entries = ifds[0]
    _, count, raw = entries[Tag.IMAGE_DESCRIPTION]
    offset = _long(order, raw)
    assert buf[offset:offset + count] == b"a float image\x00"


def test_custom_signed_long():
    image = _make_image(False, [1.0])
    image.set_custom_field_long(40001, -5)
    order, ifds = _parse(_write(image))
    raw = ifds[0][1][40001][2]
    assert struct.unpack(order + "i", raw)[0] == -5


def test_validation_errors():
    image = DNGImage(False)
    with pytest.raises(ValueError):
        image.set_bits_per_sample([32])
    with pytest.raises(ValueError):
        image.set_samples_per_pixel(5)
    with pytest.raises(ValueError):
        image.set_rows_per_strip(0)
    with pytest.raises(ValueError):
        image.set_photometric(Photometric.CFA)
    with pytest.raises(ValueError):
        image.set_compression(2)
    with pytest.raises(ValueError):
        image.set_planar_config(3)
    with pytest.raises(ValueError):
        image.set_orientation(9)
    with pytest.raises(ValueError):
        image.set_image_description("")
    with pytest.raises(ValueError):
        image.set_image_data(b"")
    with pytest.raises(ValueError):
        image.set_x_resolution(float("inf"))


def test_mismatched_samples_rejected():
    image = DNGImage(False)
    image.set_samples_per_pixel(2)
    with pytest.raises(ValueError):
        image.set_bits_per_sample([32, 16])
    with pytest.raises(ValueError):
        image.set_sample_format([9, 9])


def test_write_errors():
    with pytest.raises(ValueError):
        DNGWriter(False).write(io.BytesIO())
    image = DNGImage(False)
    with pytest.raises(ValueError):
        image.write_ifd(io.BytesIO(), 0, 0)
    image.set_image_width(3)
    with pytest.raises(ValueError):
        image.write_data(io.BytesIO())
    assert image.data_size() == 0