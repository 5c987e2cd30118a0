"""Tests for the annotation store and its merge-write."""
from __future__ import annotations

import json

import pytest

from image_review.review_lib.models import Annotation, ImageReference, StoreFormatError
from image_review.review_lib.store import AnnotatedStore, export_merge, load_store


def _images(folder: str, count: int):
    return [ImageReference(index=i, image_path=f"{folder}/img_{i}.png") for i in range(count)]


@pytest.mark.parametrize("count", [0, 1, 5])
def test_init_builds_unset_records(count):
    store = AnnotatedStore.init("/photos/a", _images("/photos/a", count))

    assert store.folders() == ["/photos/a"]
    records = store.records("/photos/a")
    assert len(records) == count
    assert all(record.annotation is Annotation.UNSET for record in records)
    assert all(record.comments is None for record in records)
    assert all(record.last_updated for record in records)
    assert [record.index for record in records] == list(range(count))


def test_set_annotation_returns_new_store():
    store = AnnotatedStore.init("/f", _images("/f", 2))
    updated = store.set_annotation("/f", 1, Annotation.CORRECT)

    assert updated.record("/f", 1).annotation is Annotation.CORRECT
    assert store.record("/f", 1).annotation is Annotation.UNSET


def test_set_annotation_out_of_range_is_noop():
    store = AnnotatedStore.init("/f", _images("/f", 2))
    assert store.set_annotation("/f", 2, Annotation.CORRECT) == store
    assert store.set_annotation("/f", -1, Annotation.CORRECT) == store
    assert store.set_annotation("/other", 0, Annotation.CORRECT) == store
    empty = AnnotatedStore.init("/empty", [])
    assert empty.set_annotation("/empty", 0, Annotation.INCORRECT) == empty


def test_set_comment_ignores_annotation_value():
    store = AnnotatedStore.init("/f", _images("/f", 1))
    updated = store.set_comment("/f", 0, "note")
    assert updated.record("/f", 0).comments == "note"
    assert updated.record("/f", 0).annotation is Annotation.UNSET
    assert store.set_comment("/f", 3, "note") == store


def test_fragment_contains_only_requested_folder():
    store = AnnotatedStore.init("/a", _images("/a", 1)).with_folder("/b", [])
    assert store.fragment("/a").folders() == ["/a"]
    assert len(store.fragment("/missing")) == 0


def test_export_merge_writes_fragment_when_no_file(tmp_path):
    target = tmp_path / "out" / "annotations.json"
    fragment = AnnotatedStore.init("/a", _images("/a", 2)).set_annotation("/a", 0, Annotation.INCORRECT)

    export_merge(target, fragment)

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert list(payload) == ["/a"]
    assert [record["annotation"] for record in payload["/a"]] == [False, None]
    assert set(payload["/a"][0]) == {"index", "image_path", "annotation", "comments", "last_updated"}
    assert not (tmp_path / "out" / "annotations.json.tmp").exists()


def test_export_merge_preserves_other_folders(tmp_path):
    target = tmp_path / "annotations.json"
    folder_a = [
        {"index": 0, "image_path": "/a/x.png", "annotation": True, "comments": None, "last_updated": "2020-01-01"},
        {"index": 1, "image_path": "/a/y.png", "annotation": False, "comments": "dark", "extra": 1},
    ]
    target.write_text(json.dumps({"/a": folder_a}), encoding="utf-8")

    export_merge(target, AnnotatedStore.init("/b", _images("/b", 3)))

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert payload["/a"] == folder_a
    assert len(payload["/b"]) == 3


def test_export_merge_replaces_touched_folder_entirely(tmp_path):
    target = tmp_path / "annotations.json"
    export_merge(target, AnnotatedStore.init("/a", _images("/a", 4)))

    export_merge(target, AnnotatedStore.init("/a", _images("/a", 2)))

    payload = json.loads(target.read_text(encoding="utf-8"))
    assert [record["index"] for record in payload["/a"]] == [0, 1]


def test_export_then_empty_export_round_trips(tmp_path):
    target = tmp_path / "annotations.json"
    fragment = (
        AnnotatedStore.init("/a", _images("/a", 2))
        .set_annotation("/a", 0, Annotation.INCORRECT)
        .set_comment("/a", 0, "blurry")
    )
    export_merge(target, fragment)
    before = load_store(target)

    export_merge(target, AnnotatedStore())

    assert load_store(target) == before
    assert before == fragment


def test_export_merge_rejects_malformed_file(tmp_path):
    target = tmp_path / "annotations.json"
    target.write_text("{not json", encoding="utf-8")

    with pytest.raises(StoreFormatError):
        export_merge(target, AnnotatedStore.init("/a", _images("/a", 1)))
    assert target.read_text(encoding="utf-8") == "{not json"


def test_export_merge_rejects_non_object_file(tmp_path):
    target = tmp_path / "annotations.json"
    target.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(StoreFormatError):
        export_merge(target, AnnotatedStore())


def test_load_store_missing_or_empty_file(tmp_path):
    assert len(load_store(tmp_path / "missing.json")) == 0
    empty = tmp_path / "empty.json"
    empty.write_text("", encoding="utf-8")
    assert len(load_store(empty)) == 0


def test_load_store_validates_records(tmp_path):
    target = tmp_path / "annotations.json"
    target.write_text(json.dumps({"/a": [{"index": 0, "image_path": "x", "annotation": "maybe"}]}), encoding="utf-8")
    with pytest.raises(StoreFormatError):
        load_store(target)
    target.write_text(json.dumps({"/a": {"index": 0}}), encoding="utf-8")
    with pytest.raises(StoreFormatError):
        load_store(target)


def test_export_merge_rejects_non_utf8_file(tmp_path):
    target = tmp_path / "annotations.json"
    target.write_bytes(b'{"/x": [\xff\xfe]}')

    with pytest.raises(StoreFormatError):
        export_merge(target, AnnotatedStore.init("/a", _images("/a", 1)))
    with pytest.raises(StoreFormatError):
        load_store(target)
    assert target.read_bytes() == b'{"/x": [\xff\xfe]}'


def _folder_text(text: str, folder: str) -> str:
    """Return the serialized block of one folder inside an indent=2 annotation file."""
    start = text.index(f'  "{folder}": [')
    end = text.index("\n  ]", start) + len("\n  ]")
    return text[start:end]


def test_export_merge_leaves_other_folder_text_identical(tmp_path):
    target = tmp_path / "annotations.json"
    folder_a = (
        AnnotatedStore.init("/a", _images("/a", 2))
        .set_annotation("/a", 1, Annotation.INCORRECT)
        .set_comment("/a", 1, "smudged lens")
    )
    export_merge(target, folder_a)
    before = _folder_text(target.read_text(encoding="utf-8"), "/a")

    export_merge(target, AnnotatedStore.init("/b", _images("/b", 3)))

    after_text = target.read_text(encoding="utf-8")
    assert _folder_text(after_text, "/a") == before
    assert '"/b"' in after_text


def test_failed_write_removes_temp_file(tmp_path, monkeypatch):
    target = tmp_path / "annotations.json"
    export_merge(target, AnnotatedStore.init("/a", _images("/a", 1)))
    original = target.read_text(encoding="utf-8")

    def failing_replace(self, other):
        raise OSError("disk full")

    monkeypatch.setattr(type(target), "replace", failing_replace)
    with pytest.raises(OSError):
        export_merge(target, AnnotatedStore.init("/b", _images("/b", 1)))

    assert not (tmp_path / "annotations.json.tmp").exists()
    assert target.read_text(encoding="utf-8") == original
