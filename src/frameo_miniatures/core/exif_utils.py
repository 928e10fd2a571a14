"""EXIF reading, curation and embedding."""

import io
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

import piexif

from .exceptions import MetadataError

ExifDict = Dict[str, Any]
ExifTagSet = Dict[str, Any]

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"

ORIENTATION_TAG = ("0th", piexif.ImageIFD.Orientation)

# Tags that survive into the output, keyed by the name used in logs.
# Orientation is never listed: rotation is applied to the pixels.
ALLOWED_TAGS: Dict[str, Tuple[str, int]] = {
    "DateTime": ("0th", 306),
    "Make": ("0th", 271),
    "Model": ("0th", 272),
    "DateTimeOriginal": ("Exif", 36867),
    "CreateDate": ("Exif", 36868),
    "OffsetTime": ("Exif", 36880),
    "OffsetTimeOriginal": ("Exif", 36881),
    "OffsetTimeDigitized": ("Exif", 36882),
    "GPSLatitudeRef": ("GPS", 1),
    "GPSLatitude": ("GPS", 2),
    "GPSLongitudeRef": ("GPS", 3),
    "GPSLongitude": ("GPS", 4),
    "GPSAltitudeRef": ("GPS", 5),
    "GPSAltitude": ("GPS", 6),
    "GPSTimeStamp": ("GPS", 7),
    "GPSProcessingMethod": ("GPS", 27),
    "GPSAreaInformation": ("GPS", 28),
    "GPSDateStamp": ("GPS", 29),
}

# piexif names that differ from the names used here
TAG_ALIASES = {"DateTimeDigitized": "CreateDate"}

CAPTURE_TIME_TAGS = ("DateTimeOriginal", "CreateDate")

_TAG_IFDS = ("0th", "Exif", "GPS")


def load_exif(raw_exif: Optional[bytes]) -> Optional[ExifDict]:
    """
    Parse a raw EXIF block into a piexif dictionary.

    Args:
        raw_exif: EXIF bytes as found in ``Image.info["exif"]``, or None

    Returns:
        piexif dictionary, or None when there is no EXIF block

    Raises:
        MetadataError: If the block cannot be parsed
    """
    if not raw_exif:
        return None

    try:
        return piexif.load(raw_exif)
    except Exception as exc:  # noqa: BLE001
        raise MetadataError(f"Failed to parse EXIF: {exc}") from exc


def _decode_value(value: Any) -> Any:
    if isinstance(value, bytes):
        try:
            return value.decode("ascii").rstrip("\x00").strip()
        except UnicodeDecodeError:
            return value
    return value


def extract_tag_set(exif_dict: Optional[ExifDict]) -> ExifTagSet:
    """
    Flatten a piexif dictionary into a tag name to value mapping.

    ASCII values are decoded to str; unknown tags are dropped.
    """
    tags: ExifTagSet = {}
    if not exif_dict:
        return tags

    for ifd in _TAG_IFDS:
        for tag_id, value in (exif_dict.get(ifd) or {}).items():
            info = piexif.TAGS.get(ifd, {}).get(tag_id)
            if info is None:
                continue
            name = TAG_ALIASES.get(info["name"], info["name"])
            tags[name] = _decode_value(value)

    return tags


def get_capture_time(tags: ExifTagSet) -> Optional[datetime]:
    """
    Return the first parseable capture time, trying DateTimeOriginal then CreateDate.

    The value is interpreted as local time.
    """
    for name in CAPTURE_TIME_TAGS:
        value = tags.get(name)
        if not isinstance(value, str):
            continue
        try:
            return datetime.strptime(value, EXIF_DATETIME_FORMAT)
        except ValueError:
            continue
    return None


def get_orientation(tags: ExifTagSet) -> int:
    """Return the numeric orientation, 0 when absent or malformed."""
    value = tags.get("Orientation")
    if isinstance(value, (tuple, list)) and value:
        value = value[0]
    if isinstance(value, int):
        return value
    return 0


def curate_exif(exif_dict: ExifDict) -> Optional[bytes]:
    """
    Rebuild an EXIF block that holds only the allow-listed tags.

    Args:
        exif_dict: Source piexif dictionary

    Returns:
        EXIF bytes ready for embedding, or None when no allowed tag is present

    Raises:
        MetadataError: If the rebuilt block cannot be serialized
    """
    curated: ExifDict = {"0th": {}, "Exif": {}, "GPS": {}, "Interop": {}, "1st": {}, "thumbnail": None}
    found = 0

    for ifd, tag_id in ALLOWED_TAGS.values():
        if (ifd, tag_id) == ORIENTATION_TAG:
            continue
        if tag_id not in piexif.TAGS.get(ifd, {}):
            continue
        value = (exif_dict.get(ifd) or {}).get(tag_id)
        if value is None:
            continue
        curated[ifd][tag_id] = value
        found += 1

    if not found:
        return None

    try:
        return piexif.dump(curated)
    except Exception as exc:  # noqa: BLE001
        raise MetadataError(f"Failed to rebuild EXIF: {exc}") from exc


def embed_exif(encoded: bytes, exif_bytes: bytes) -> bytes:
    """
    Embed an EXIF block into encoded JPEG or WebP bytes.

    JPEG gets a rewritten APP1 segment, WebP an EXIF chunk.

    Raises:
        MetadataError: If the image bytes cannot be rewritten
    """
    try:
        output = io.BytesIO()
        piexif.insert(exif_bytes, encoded, output)
        return output.getvalue()
    except Exception as exc:  # noqa: BLE001
        raise MetadataError(f"Failed to embed EXIF: {exc}") from exc