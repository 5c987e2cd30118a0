"""Directory scanner producing the image list for one folder."""
from __future__ import annotations

import logging
import stat
from pathlib import Path
from typing import List, Union

from .models import ImageReference

logger = logging.getLogger("review_lib.scanner")


def scan(folder: Union[str, Path]) -> List[ImageReference]:
    """Return the plain files directly under ``folder`` as ordered references.

    Entries are sorted by name so repeated scans of an unchanged folder agree.
    Sub-directories are skipped. Entries whose metadata cannot be read are
    skipped with a warning. A missing or unreadable folder gives an empty list.
    """
    root = Path(folder)
    try:
        entries = sorted(root.iterdir(), key=lambda entry: entry.name)
    except OSError as exc:
        logger.warning("Cannot list %s: %s", root, exc)
        return []

    images: List[ImageReference] = []
    skipped = 0
    for entry in entries:
        try:
            mode = entry.stat().st_mode
        except OSError as exc:
            logger.warning("Skipping %s: cannot read metadata (%s)", entry, exc)
            skipped += 1
            continue
        if not stat.S_ISREG(mode):
            continue
        images.append(ImageReference(index=len(images), image_path=str(entry)))
    logger.info("Scanned %s | files=%d skipped=%d", root, len(images), skipped)
    return images
