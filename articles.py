from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List

from errors import Corrupt, InvalidArgument, NotFound, StorageUnavailable
from slugs import is_valid_slug

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".json"
FIELDS = ("title", "slug", "content", "published")


@dataclass
class Article:
    title: str
    slug: str
    content: str
    published: datetime

    def to_dict(self) -> Dict[str, str]:
        return {
            "title": self.title,
            "slug": self.slug,
            "content": self.content,
            "published": self.published.isoformat(),
        }

    @classmethod
    def from_dict(cls, raw: Dict) -> "Article":
        missing = [name for name in FIELDS if not isinstance(raw.get(name), str)]
        if missing:
            raise ValueError(f"missing or non-string field(s): {', '.join(missing)}")
        return cls(
            title=raw["title"],
            slug=raw["slug"],
            content=raw["content"],
            published=parse_timestamp(raw["published"]),
        )


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ``published`` value into an aware UTC datetime."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class ArticleStore:
    """One JSON file per article under ``root``, named after the slug.

    Nothing is cached; every call goes back to the disk. Renames are not
    handled here: callers save under the new slug and then delete the old
    one.
    """

    def __init__(self, root: Path, skip_corrupt: bool = False) -> None:
        self.root = Path(root)
        self.skip_corrupt = skip_corrupt

    def ensure_root(self) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create {self.root}: {exc}") from exc

    def path_for(self, slug: str) -> Path:
        return self.root / f"{slug}{RECORD_SUFFIX}"

    def list(self) -> List[Article]:
        """All articles, newest ``published`` first."""
        self.ensure_root()
        try:
            paths = sorted(p for p in self.root.iterdir() if p.suffix == RECORD_SUFFIX and p.is_file())
        except OSError as exc:
            raise StorageUnavailable(f"Cannot list {self.root}: {exc}") from exc

        articles: List[Article] = []
        for path in paths:
            try:
                articles.append(self._read(path))
            except NotFound:
                # removed by a concurrent delete or rename
                continue
            except Corrupt as exc:
                if not self.skip_corrupt:
                    raise
                logger.warning("Skipping %s", exc)
        # sort is stable, so equal dates keep file-name order
        return sorted(articles, key=lambda a: a.published, reverse=True)

    def exists(self, slug: str) -> bool:
        if not is_valid_slug(slug):
            return False
        return self.path_for(slug).is_file()

    def load(self, slug: str) -> Article:
        if not is_valid_slug(slug):
            raise NotFound(slug)
        self.ensure_root()
        path = self.path_for(slug)
        if not path.is_file():
            raise NotFound(slug)
        return self._read(path)

    def save(self, article: Article) -> None:
        if not article.slug:
            raise InvalidArgument("missing slug")
        if not is_valid_slug(article.slug):
            raise InvalidArgument(f"invalid slug {article.slug!r}")
        if article.published.tzinfo is None:
            raise InvalidArgument("published must be timezone-aware")
        self.ensure_root()
        path = self.path_for(article.slug)
        try:
            fd, temp_name = tempfile.mkstemp(dir=self.root, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as exc:
            raise StorageUnavailable(f"Cannot write {path}: {exc}") from exc
        # one temp file per write, so overlapping saves of a slug cannot interleave
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(article.to_dict(), fh, indent=2)
            os.replace(temp_name, path)
        except OSError as exc:
            try:
                os.unlink(temp_name)
            except FileNotFoundError:
                pass
            raise StorageUnavailable(f"Cannot write {path}: {exc}") from exc
        logger.debug("Wrote %s", path)

    def delete(self, slug: str) -> None:
        if not is_valid_slug(slug):
            return
        self.ensure_root()
        path = self.path_for(slug)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageUnavailable(f"Cannot delete {path}: {exc}") from exc
        logger.debug("Removed %s", path)

    def _read(self, path: Path) -> Article:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                raw = json.load(fh)
        except FileNotFoundError as exc:
            raise NotFound(path.stem) from exc
        except OSError as exc:
            raise StorageUnavailable(f"Cannot read {path}: {exc}") from exc
        except ValueError as exc:
            raise Corrupt(path, str(exc)) from exc
        if not isinstance(raw, dict):
            raise Corrupt(path, "record is not an object")
        try:
            article = Article.from_dict(raw)
        except ValueError as exc:
            raise Corrupt(path, str(exc)) from exc
        if article.slug != path.stem:
            raise Corrupt(path, f"slug field {article.slug!r} does not match file name")
        return article
