"""Progress summaries over annotation records."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List

from .models import Annotation, AnnotationRecord
from .store import AnnotatedStore


@dataclass
class FolderSummary:
    folder_path: str
    total: int
    correct: int
    incorrect: int
    unset: int
    commented: int

    @property
    def reviewed(self) -> int:
        return self.correct + self.incorrect

    @property
    def progress_percent(self) -> float:
        return (self.reviewed / self.total * 100) if self.total > 0 else 0.0

    def describe(self) -> str:
        return (
            f"correct={self.correct} incorrect={self.incorrect} unset={self.unset} "
            f"({self.progress_percent:.0f}% reviewed)"
        )


def summarize_records(folder_path: str, records: Iterable[AnnotationRecord]) -> FolderSummary:
    summary = FolderSummary(folder_path=folder_path, total=0, correct=0, incorrect=0, unset=0, commented=0)
    for record in records:
        summary.total += 1
        if record.annotation is Annotation.CORRECT:
            summary.correct += 1
        elif record.annotation is Annotation.INCORRECT:
            summary.incorrect += 1
            if record.comments:
                summary.commented += 1
        else:
            summary.unset += 1
    return summary


def summarize_store(store: AnnotatedStore) -> List[FolderSummary]:
    return [summarize_records(folder, records) for folder, records in sorted(store.items())]
