"""Image processing utilities for frameo-miniatures."""

import io
import os
from typing import Tuple

import pillow_heif
from PIL import Image

from .error_handling import with_error_handling

VALID_EXTENSIONS = (".jpg", ".jpeg", ".heic")

# Characters FAT32 (and the frame's storage) cannot hold in a filename
INVALID_FILENAME_CHARS = ("\\", "/", ":", ";", "*", "?", '"', "<", ">", "|")

# Pillow's bicubic filter is the a=-0.5 Keys cubic, i.e. Catmull-Rom
RESAMPLE_FILTER = Image.Resampling.BICUBIC

ORIENTATION_TRANSPOSE = {
    3: Image.Transpose.ROTATE_180,
    6: Image.Transpose.ROTATE_270,  # 90 degrees clockwise
    8: Image.Transpose.ROTATE_90,  # 90 degrees counter-clockwise
}

PILLOW_FORMATS = {"jpg": "JPEG", "jpeg": "JPEG", "webp": "WEBP"}


def is_valid_extension(path: str) -> bool:
    """Return True if the file has a supported source image extension."""
    return os.path.splitext(path)[1].lower() in VALID_EXTENSIONS


def normalize_filename(filename: str) -> str:
    """
    Strip the extension and replace characters that are invalid on FAT32.

    Args:
        filename: Base name of the source file

    Returns:
        Extension-less name with every invalid character replaced by "_"
    """
    name = os.path.splitext(filename)[0]
    for char in INVALID_FILENAME_CHARS:
        name = name.replace(char, "_")
    return name


def output_extension(output_format: str) -> str:
    if output_format.lower() in ("jpg", "jpeg"):
        return ".jpg"
    return ".webp"


def get_output_filename(filename: str, output_format: str) -> str:
    """
    Convert an input filename to the expected output filename.

    Examples:
        >>> get_output_filename("photo:test.jpg", "webp")
        'photo_test.webp'
        >>> get_output_filename("photo<test>.jpg", "jpg")
        'photo_test_.jpg'
    """
    return normalize_filename(filename) + output_extension(output_format)


def get_output_relative_path(relative_path: str, output_format: str) -> str:
    """Map an input path relative to the input root onto its output path."""
    directory, filename = os.path.split(relative_path)
    return os.path.join(directory, get_output_filename(filename, output_format))


def calculate_fit_size(
    width: int, height: int, frame_long: int, frame_short: int
) -> Tuple[int, int]:
    """
    Compute the size of an image fitted within the frame.

    Landscape and square images fit into ``frame_long x frame_short``,
    portrait images into ``frame_short x frame_long``. The aspect ratio is
    preserved, the box is never exceeded and smaller images are not enlarged.

    Args:
        width: Source width in pixels
        height: Source height in pixels
        frame_long: Longer side of the frame
        frame_short: Shorter side of the frame

    Returns:
        Tuple of (new_width, new_height)
    """
    if width >= height:
        max_w, max_h = frame_long, frame_short
    else:
        max_w, max_h = frame_short, frame_long

    if width <= max_w and height <= max_h:
        return width, height

    src_ratio = width / height
    if src_ratio > max_w / max_h:
        new_w = max_w
        new_h = round(max_w / src_ratio)
    else:
        new_h = max_h
        new_w = round(max_h * src_ratio)

    return max(1, new_w), max(1, new_h)


def fit_image(img: Image.Image, frame_long: int, frame_short: int) -> Image.Image:
    """Resize an image to fit within the frame using Catmull-Rom resampling."""
    new_size = calculate_fit_size(img.width, img.height, frame_long, frame_short)
    if new_size == img.size:
        return img
    return img.resize(new_size, RESAMPLE_FILTER)


def apply_orientation(img: Image.Image, orientation: int) -> Image.Image:
    """
    Physically rotate pixels according to the EXIF orientation value.

    Only the rotations 3, 6 and 8 are handled; every other value
    (including 1 and mirrored variants) leaves the image untouched.
    """
    transpose = ORIENTATION_TRANSPOSE.get(orientation)
    if transpose is None:
        return img
    return img.transpose(transpose)


@with_error_handling
def decode_image(path: str) -> Image.Image:
    """
    Decode a source image, choosing the decoder by extension.

    HEIC files go through pillow-heif, everything else through Pillow.
    The returned image is fully loaded; ``info["exif"]`` carries the raw
    EXIF block when the source has one.
    """
    if os.path.splitext(path)[1].lower() == ".heic":
        heif_file = pillow_heif.open_heif(path, convert_hdr_to_8bit=True)
        return heif_file.to_pillow()

    with Image.open(path) as img:
        img.load()
        # copy() keeps img.info and outlives the closed file handle
        return img.copy()


@with_error_handling
def encode_image(img: Image.Image, output_format: str, quality: int) -> bytes:
    """
    Encode an image to JPEG or WebP bytes in memory.

    Args:
        img: Image to encode
        output_format: "jpg", "jpeg" or "webp"
        quality: 0-100 quality for either format

    Returns:
        Encoded bytes, without any metadata
    """
    if img.mode != "RGB":
        img = img.convert("RGB")

    buffer = io.BytesIO()
    # Empty exif keeps the source block out of the encoded bytes
    img.save(
        buffer,
        format=PILLOW_FORMATS.get(output_format.lower(), "WEBP"),
        quality=quality,
        exif=b"",
    )
    return buffer.getvalue()
