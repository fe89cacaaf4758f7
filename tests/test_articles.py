"""Tests for the file-backed article store."""

import json
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from articles import Article, ArticleStore, parse_timestamp
from errors import Corrupt, InvalidArgument, NotFound, StorageUnavailable


def make_article(slug="first-post", day=1, **kwargs) -> Article:
    fields = {
        "title": slug.replace("-", " ").title(),
        "slug": slug,
        "content": "Body text.\nSecond line.",
        "published": datetime(2024, 1, day, tzinfo=timezone.utc),
    }
    fields.update(kwargs)
    return Article(**fields)


class TestSaveAndLoad:
    def test_round_trip_keeps_all_fields(self, store: ArticleStore):
        article = make_article()
        store.save(article)
        assert store.load("first-post") == article

    def test_record_is_named_after_slug(self, store: ArticleStore):
        store.save(make_article("named-file"))
        path = store.root / "named-file.json"
        assert path.is_file()
        raw = json.loads(path.read_text(encoding="utf-8"))
        assert set(raw) == {"title", "slug", "content", "published"}
        assert raw["slug"] == "named-file"

    def test_save_overwrites_previous_content(self, store: ArticleStore):
        store.save(make_article(content="old"))
        store.save(make_article(content="new"))
        assert store.load("first-post").content == "new"
        assert len(store.list()) == 1

    def test_save_is_idempotent(self, store: ArticleStore):
        article = make_article()
        store.save(article)
        first = store.path_for(article.slug).read_bytes()
        store.save(article)
        assert store.path_for(article.slug).read_bytes() == first

    def test_save_leaves_no_temp_file(self, store: ArticleStore):
        store.save(make_article())
        assert [p.name for p in store.root.iterdir()] == ["first-post.json"]

    def test_naive_published_is_rejected(self, store: ArticleStore):
        with pytest.raises(InvalidArgument):
            store.save(make_article(published=datetime(2024, 1, 2)))
        assert not store.exists("first-post")

    def test_round_trip_with_other_offset(self, store: ArticleStore):
        article = make_article(published=datetime(2024, 1, 2, 9, 30, tzinfo=timezone(timedelta(hours=2))))
        store.save(article)
        assert store.load(article.slug) == article

    def test_concurrent_saves_of_one_slug(self, store: ArticleStore):
        errors = []

        def writer(size):
            for _ in range(50):
                try:
                    store.save(make_article("same", content="x" * size))
                    store.load("same")
                except Exception as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=writer, args=(10 if i % 2 else 5000,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert store.load("same").content in ("x" * 10, "x" * 5000)
        assert [p.name for p in store.root.iterdir()] == ["same.json"]

    def test_save_requires_slug(self, store: ArticleStore):
        with pytest.raises(InvalidArgument):
            store.save(make_article(slug=""))

    def test_save_rejects_path_like_slug(self, store: ArticleStore):
        with pytest.raises(InvalidArgument):
            store.save(make_article(slug="../escape"))

    def test_load_missing_raises_not_found(self, store: ArticleStore):
        with pytest.raises(NotFound):
            store.load("nope")

    def test_load_invalid_slug_raises_not_found(self, store: ArticleStore):
        with pytest.raises(NotFound):
            store.load("../config")

    def test_load_creates_missing_root(self, tmp_path: Path):
        store = ArticleStore(tmp_path / "missing" / "data")
        with pytest.raises(NotFound):
            store.load("anything")
        assert store.root.is_dir()

    def test_load_corrupt_json(self, store: ArticleStore):
        store.ensure_root()
        store.path_for("broken").write_text("{not json", encoding="utf-8")
        with pytest.raises(Corrupt):
            store.load("broken")

    def test_load_record_missing_field(self, store: ArticleStore):
        store.ensure_root()
        store.path_for("partial").write_text(json.dumps({"title": "x", "slug": "partial"}), encoding="utf-8")
        with pytest.raises(Corrupt):
            store.load("partial")

    def test_load_record_with_mismatched_slug(self, store: ArticleStore):
        store.ensure_root()
        raw = make_article("other-name").to_dict()
        store.path_for("file-name").write_text(json.dumps(raw), encoding="utf-8")
        with pytest.raises(Corrupt):
            store.load("file-name")

    def test_load_record_with_bad_timestamp(self, store: ArticleStore):
        store.ensure_root()
        raw = {"title": "x", "slug": "bad-date", "content": "y", "published": "yesterday"}
        store.path_for("bad-date").write_text(json.dumps(raw), encoding="utf-8")
        with pytest.raises(Corrupt):
            store.load("bad-date")


class TestDelete:
    def test_delete_then_load_fails(self, store: ArticleStore):
        store.save(make_article())
        store.delete("first-post")
        with pytest.raises(NotFound):
            store.load("first-post")

    def test_delete_twice_is_not_an_error(self, store: ArticleStore):
        store.save(make_article())
        store.delete("first-post")
        store.delete("first-post")

    def test_delete_missing_is_noop(self, store: ArticleStore):
        store.delete("never-existed")

    def test_delete_ignores_invalid_slug(self, store: ArticleStore, tmp_path: Path):
        outside = tmp_path / "keep.json"
        outside.write_text("{}", encoding="utf-8")
        store.delete("../keep")
        assert outside.exists()


class TestList:
    def test_empty_store(self, store: ArticleStore):
        assert store.list() == []

    def test_newest_first(self, store: ArticleStore):
        store.save(make_article("middle", day=2))
        store.save(make_article("oldest", day=1))
        store.save(make_article("newest", day=3))
        assert [a.slug for a in store.list()] == ["newest", "middle", "oldest"]

    def test_ties_keep_name_order(self, store: ArticleStore):
        for slug in ("c-post", "a-post", "b-post"):
            store.save(make_article(slug, day=5))
        assert [a.slug for a in store.list()] == ["a-post", "b-post", "c-post"]

    def test_ignores_other_files(self, store: ArticleStore):
        store.save(make_article())
        (store.root / "notes.txt").write_text("hello", encoding="utf-8")
        (store.root / "nested.json").mkdir()
        assert [a.slug for a in store.list()] == ["first-post"]

    def test_every_read_hits_disk(self, store: ArticleStore):
        store.save(make_article())
        assert len(store.list()) == 1
        store.path_for("first-post").unlink()
        assert store.list() == []

    def test_corrupt_record_fails_listing(self, store: ArticleStore):
        store.save(make_article())
        store.path_for("broken").write_text("[]", encoding="utf-8")
        with pytest.raises(Corrupt):
            store.list()

    def test_corrupt_record_skipped_when_enabled(self, tmp_path: Path):
        store = ArticleStore(tmp_path / "data", skip_corrupt=True)
        store.save(make_article())
        store.path_for("broken").write_text("{", encoding="utf-8")
        assert [a.slug for a in store.list()] == ["first-post"]

    def test_root_that_is_a_file(self, tmp_path: Path):
        blocker = tmp_path / "data"
        blocker.write_text("", encoding="utf-8")
        store = ArticleStore(blocker)
        with pytest.raises(StorageUnavailable):
            store.list()


class TestTimestamps:
    def test_zulu_suffix(self):
        assert parse_timestamp("2024-01-02T00:00:00Z") == datetime(2024, 1, 2, tzinfo=timezone.utc)

    def test_naive_value_is_utc(self):
        assert parse_timestamp("2024-01-02T03:04:05").tzinfo == timezone.utc

    def test_offset_is_normalised(self):
        parsed = parse_timestamp("2024-01-02T02:00:00+02:00")
        assert parsed == datetime(2024, 1, 2, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)
