"""Value types shared by the scanner, the store and the workflow."""
from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class StoreFormatError(ValueError):
    """Raised when an annotation file or record does not have the expected shape."""


class Annotation(Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNSET = "unset"

    def to_json(self) -> Optional[bool]:
        if self is Annotation.CORRECT:
            return True
        if self is Annotation.INCORRECT:
            return False
        return None

    @classmethod
    def from_json(cls, value: Any) -> "Annotation":
        # bool is checked by identity so 0/1 are not accepted as verdicts
        if value is True:
            return cls.CORRECT
        if value is False:
            return cls.INCORRECT
        if value is None:
            return cls.UNSET
        raise StoreFormatError(f"Unsupported annotation value: {value!r}")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class ImageReference:
    index: int
    image_path: str


@dataclass(frozen=True)
class AnnotationRecord(ImageReference):
    annotation: Annotation = Annotation.UNSET
    comments: Optional[str] = None
    last_updated: Optional[str] = None

    @classmethod
    def from_image(cls, image: ImageReference, timestamp: Optional[str] = None) -> "AnnotationRecord":
        return cls(
            index=image.index,
            image_path=image.image_path,
            annotation=Annotation.UNSET,
            comments=None,
            last_updated=timestamp or utc_timestamp(),
        )

    def with_annotation(self, value: Annotation, *, clear_comments: bool = False) -> "AnnotationRecord":
        comments = None if clear_comments else self.comments
        return replace(self, annotation=value, comments=comments, last_updated=utc_timestamp())

    def with_comments(self, text: Optional[str]) -> "AnnotationRecord":
        return replace(self, comments=text, last_updated=utc_timestamp())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "image_path": self.image_path,
            "annotation": self.annotation.to_json(),
            "comments": self.comments,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, raw: Any) -> "AnnotationRecord":
        """Parse one persisted record.

        Raises:
            StoreFormatError: If the record is not an object or a field has the wrong type
        """
        if not isinstance(raw, dict):
            raise StoreFormatError(f"Record must be an object, got {type(raw).__name__}")
        index = raw.get("index")
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise StoreFormatError(f"Record index must be a non-negative integer: {index!r}")
        image_path = raw.get("image_path")
        if not isinstance(image_path, str):
            raise StoreFormatError(f"Record image_path must be a string: {image_path!r}")
        comments = raw.get("comments")
        if comments is not None and not isinstance(comments, str):
            raise StoreFormatError(f"Record comments must be a string or null: {comments!r}")
        last_updated = raw.get("last_updated")
        if last_updated is not None and not isinstance(last_updated, str):
            raise StoreFormatError(f"Record last_updated must be a string or null: {last_updated!r}")
        return cls(
            index=index,
            image_path=image_path,
            annotation=Annotation.from_json(raw.get("annotation")),
            comments=comments,
            last_updated=last_updated,
        )
