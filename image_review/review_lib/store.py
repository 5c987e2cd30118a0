"""Per-folder annotation store and its on-disk merge-write."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .models import Annotation, AnnotationRecord, ImageReference, StoreFormatError, utc_timestamp

logger = logging.getLogger("review_lib.store")

FolderAnnotations = Tuple[AnnotationRecord, ...]


class AnnotatedStore:
    """Mapping of folder path to that folder's ordered annotation records.

    Values are never mutated in place. ``set_annotation`` and ``set_comment``
    return a new store, so a state object holding a store can be shared
    freely between the workflow and the renderer.

    Folder keys are used exactly as given. Two spellings of the same
    directory are two different keys.
    """

    def __init__(self, folders: Optional[Mapping[str, Sequence[AnnotationRecord]]] = None) -> None:
        self._folders: Dict[str, FolderAnnotations] = {
            folder: tuple(records) for folder, records in (folders or {}).items()
        }

    @classmethod
    def init(cls, folder_path: str, images: Iterable[ImageReference]) -> "AnnotatedStore":
        """Build a fragment holding one Unset record per image for ``folder_path``."""
        timestamp = utc_timestamp()
        records = tuple(AnnotationRecord.from_image(image, timestamp) for image in images)
        return cls({folder_path: records})

    def __contains__(self, folder_path: object) -> bool:
        return folder_path in self._folders

    def __iter__(self) -> Iterator[str]:
        return iter(self._folders)

    def __len__(self) -> int:
        return len(self._folders)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AnnotatedStore):
            return NotImplemented
        return self._folders == other._folders

    def __repr__(self) -> str:
        counts = ", ".join(f"{folder!r}: {len(records)}" for folder, records in self._folders.items())
        return f"AnnotatedStore({{{counts}}})"

    def folders(self) -> List[str]:
        return list(self._folders)

    def records(self, folder_path: str) -> FolderAnnotations:
        return self._folders.get(folder_path, ())

    def items(self) -> Iterator[Tuple[str, FolderAnnotations]]:
        return iter(self._folders.items())

    def record(self, folder_path: str, index: int) -> Optional[AnnotationRecord]:
        records = self.records(folder_path)
        if 0 <= index < len(records):
            return records[index]
        return None

    def with_folder(self, folder_path: str, records: Sequence[AnnotationRecord]) -> "AnnotatedStore":
        folders = dict(self._folders)
        folders[folder_path] = tuple(records)
        return AnnotatedStore(folders)

    def fragment(self, folder_path: str) -> "AnnotatedStore":
        """Return a store holding only ``folder_path`` (empty if unknown)."""
        if folder_path not in self._folders:
            return AnnotatedStore()
        return AnnotatedStore({folder_path: self._folders[folder_path]})

    def set_annotation(
        self,
        folder_path: str,
        index: int,
        value: Annotation,
        *,
        clear_comments: bool = False,
    ) -> "AnnotatedStore":
        """Point update of one record's verdict.

        Out-of-range indices and unknown folders return the store unchanged:
        classification events can arrive right after the folder was swapped
        or while it is empty.
        """
        current = self.record(folder_path, index)
        if current is None:
            logger.debug("set_annotation ignored folder=%s index=%d", folder_path, index)
            return self
        return self._replace_record(folder_path, index, current.with_annotation(value, clear_comments=clear_comments))

    def set_comment(self, folder_path: str, index: int, text: Optional[str]) -> "AnnotatedStore":
        """Point update of one record's comment, regardless of its verdict."""
        current = self.record(folder_path, index)
        if current is None:
            logger.debug("set_comment ignored folder=%s index=%d", folder_path, index)
            return self
        return self._replace_record(folder_path, index, current.with_comments(text))

    def _replace_record(self, folder_path: str, index: int, record: AnnotationRecord) -> "AnnotatedStore":
        records = list(self._folders[folder_path])
        records[index] = record
        return self.with_folder(folder_path, records)

    def to_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        return {folder: [record.to_dict() for record in records] for folder, records in self._folders.items()}

    @classmethod
    def from_payload(cls, payload: Any) -> "AnnotatedStore":
        if not isinstance(payload, dict):
            raise StoreFormatError("Annotation file must contain a JSON object at the top level")
        folders: Dict[str, List[AnnotationRecord]] = {}
        for folder, raw_records in payload.items():
            if not isinstance(raw_records, list):
                raise StoreFormatError(f"Records for {folder!r} must be a list")
            folders[folder] = [AnnotationRecord.from_dict(raw) for raw in raw_records]
        return cls(folders)


def _read_payload(path: Path) -> Dict[str, Any]:
    """Read the raw JSON object at ``path``; a missing or empty file is an empty store."""
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise StoreFormatError(f"Annotation file {path} is not valid UTF-8: {exc}") from exc
    if not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StoreFormatError(f"Annotation file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise StoreFormatError(f"Annotation file {path} must contain a JSON object at the top level")
    return payload


def _write_payload(path: Path, payload: Dict[str, Any]) -> None:
    """Write ``payload`` atomically: temp file first, then replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_suffix(path.suffix + ".tmp")
    try:
        temp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        temp_path.replace(path)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


def load_store(path: Path) -> AnnotatedStore:
    """Load and validate the whole annotation file.

    Raises:
        StoreFormatError: If the file exists but is not a valid annotation store
    """
    return AnnotatedStore.from_payload(_read_payload(path))


def export_merge(path: Path, fragment: AnnotatedStore) -> Dict[str, Any]:
    """Merge ``fragment`` into the annotation file at ``path`` and write it back whole.

    Each folder in ``fragment`` replaces the on-disk entry for that folder
    entirely. Folders not in ``fragment`` are carried over exactly as they
    were read, without re-validation.

    Returns:
        The payload that was written

    Raises:
        StoreFormatError: If an existing file cannot be parsed
        OSError: If the file cannot be read or written
    """
    on_disk = _read_payload(path)
    existed = path.exists()
    for folder, records in fragment.to_payload().items():
        on_disk[folder] = records
    _write_payload(path, on_disk)
    logger.info(
        "Exported %d folder(s) to %s (merged=%s total_folders=%d)",
        len(fragment),
        path,
        existed,
        len(on_disk),
    )
    return on_disk
