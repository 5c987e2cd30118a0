"""Image sniffing and metadata helpers using Pillow."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dateutil import parser as dateparser
from PIL import Image, UnidentifiedImageError


@dataclass
class ImageMetadata:
    format: Optional[str]
    width: Optional[int]
    height: Optional[int]
    exif_datetime: Optional[str]


EXIF_IFD_POINTER = 0x8769
EXIF_IFD_DATETIME_TAGS = (36867, 36868)  # DateTimeOriginal, DateTimeDigitized
IFD0_DATETIME_TAG = 306  # DateTime


def is_valid_image(path: Union[str, Path]) -> bool:
    """Return True when Pillow recognises the file's format and its structure checks out.

    Only the header and container are checked; pixel data is not decoded.
    """
    try:
        with Image.open(path) as img:
            img.verify()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        return False
    return True


def probe_image(path: Union[str, Path]) -> ImageMetadata:
    fmt = None
    width = height = None
    exif_datetime = None
    try:
        with Image.open(path) as img:
            fmt = img.format
            width, height = img.size
            exif_datetime = _exif_datetime(img.getexif())
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        pass
    return ImageMetadata(format=fmt, width=width, height=height, exif_datetime=exif_datetime)


def _exif_datetime(exif: Image.Exif) -> Optional[str]:
    if not exif:
        return None
    sub_ifd = exif.get_ifd(EXIF_IFD_POINTER)
    candidates = [sub_ifd.get(tag) for tag in EXIF_IFD_DATETIME_TAGS]
    candidates.append(exif.get(IFD0_DATETIME_TAG))
    for value in candidates:
        if value:
            normalized = _normalize_datetime(value)
            if normalized:
                return normalized
    return None


def _normalize_datetime(value: str) -> Optional[str]:
    try:
        # EXIF writes dates as 2001:02:03 04:05:06
        return dateparser.parse(str(value).replace(":", "-", 2)).isoformat()
    except (ValueError, TypeError, OverflowError):
        return None
