# hdrkit

Pure-Python helpers for working with high-dynamic-range image data. It has no
dependencies outside the standard library.

## Modules

- `hdrkit.tiff_format` – TIFF building blocks: the `Tag`, `DataType`,
  `SubfileType`, `PlanarConfig`, `Compression`, `Orientation`,
  `ResolutionUnit`, `Photometric` and `SampleFormat` enumerations, the
  `IFDEntry` dataclass, `type_size`, `double_to_rational`, `build_entry` and
  `tiff_header`.
- `hdrkit.dng_writer` – `DNGImage` collects tags and one pixel strip through
  its `set_*` methods; `DNGWriter` writes one or more images as a single
  uncompressed TIFF/DNG file, with the header first, then every image's tag
  data and pixels, then the IFD tables. Pixel data is given in host byte
  order and converted to the file's byte order (16-, 32- and 64-bit samples).
- `hdrkit.cubemap` – the `Image` dataclass (interleaved floats), RGBM
  encoding (`rgbm_to_linear`, `linear_to_rgbm`), `convert_xyz_to_cube_uv`,
  bilinear `sample_texture` with repeat wrapping, `sample_cubemap`,
  `cubemap_to_longlat` and `float_to_byte`.
- `hdrkit.tonemap` – `to_byte` and `to_ldr` map float RGBA to 8-bit with a
  scale and a gamma; `clip_rgb` clamps the RGB channels, drops alpha and
  returns a `ClipResult` holding the clipped values and their per-channel
  minimum and maximum.
- `hdrkit.trackball` – a virtual trackball: `trackball`, `axis_to_quat`,
  `add_quats`, `normalize_quat`, `build_rotmatrix`, and the `Trackball` class
  that accumulates rotations and renormalises every 97 additions.
  Quaternions are `(x, y, z, w)` tuples.

Invalid arguments raise `ValueError` rather than returning status flags.

## Examples

Write a 32-bit floating point RGB TIFF:

```python
from array import array
from hdrkit.dng_writer import DNGImage, DNGWriter
from hdrkit.tiff_format import (
    Compression, Photometric, PlanarConfig, ResolutionUnit, SampleFormat,
)

width, height = 2, 1
pixels = array("f", [0.1, 0.2, 0.3, 1.5, 2.5, 3.5])

image = DNGImage(False)
image.set_image_width(width)
image.set_image_length(height)
image.set_rows_per_strip(height)
image.set_samples_per_pixel(3)
image.set_bits_per_sample([32, 32, 32])
image.set_planar_config(PlanarConfig.CONTIG)
image.set_compression(Compression.NONE)
image.set_photometric(Photometric.RGB)
image.set_x_resolution(1.0)
image.set_y_resolution(1.0)
image.set_resolution_unit(ResolutionUnit.NONE)
image.set_sample_format([SampleFormat.IEEEFP] * 3)
image.set_image_data(pixels.tobytes())

writer = DNGWriter(False)
writer.add_image(image)
writer.write_to_file("out.tiff")
```

`DNGWriter.write(stream)` writes to any binary stream that starts at offset 0,
such as `io.BytesIO`.

Turn six cube faces into a lat-long panorama:

```python
from hdrkit.cubemap import Image, cubemap_to_longlat

faces = [Image(4, 4) for _ in range(6)]   # order: +X, -X, +Y, -Y, +Z, -Z
panorama = cubemap_to_longlat(faces, 16, phi_offset=90.0)
print(panorama.width, panorama.height)    # 16 8
```

Tone map and clip float RGBA:

```python
from hdrkit.tonemap import clip_rgb, to_ldr

rgba = [0.5, 2.0, -1.0, 1.0]
ldr = to_ldr(rgba, 1, 1, scale=1.0, gamma=2.2, ignore_alpha=True)
result = clip_rgb(rgba, 1, 1, rgb_min=(0.0, 0.0, 0.0), rgb_max=(1.0, 1.0, 1.0))
print(result.rgb, result.v_min, result.v_max)
```

Rotate with a trackball:

```python
from hdrkit.trackball import Trackball, build_rotmatrix, trackball

ball = Trackball()
ball.add(trackball(0.0, 0.0, 0.2, 0.1))
matrix = build_rotmatrix(ball.quat)
```

## What it does not do

- It does not read or write OpenEXR files, nor PNG, Radiance HDR or other
  image formats; pixels go in and come out as plain Python sequences and
  bytes. The only file format it writes is uncompressed TIFF/DNG.
- It has no command-line programs and no viewer window; every feature is a
  library call.
- There is no single call that turns float pixels into a TIFF file; build
  the image with `DNGImage` as in the example above.