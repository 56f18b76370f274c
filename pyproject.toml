[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hdrkit"
version = "0.1.0"
description = "Small pure-Python tools for HDR image data: TIFF/DNG writing, cubemap to lat-long conversion, tone mapping and trackball rotation."
requires-python = ">=3.10"
dependencies = []
keywords = ["hdr", "tiff", "dng", "cubemap", "rgbm", "tonemap", "trackball", "quaternion"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hdrkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
