from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Dict, List, Mapping, Optional

from articles import Article, ArticleStore
from errors import InvalidCredentials, Unauthenticated, ValidationError
from sessions import SessionRegistry
from slugs import make_slug

logger = logging.getLogger(__name__)

DATE_INPUT_FMT = "%Y-%m-%d"
_DATE_INPUT_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")

MSG_REQUIRED = "All fields are required"
MSG_BAD_DATE = "Invalid date (use YYYY-MM-DD)"
MSG_DUPLICATE = "An article with this slug already exists"


def read_form(form: Mapping[str, str]) -> Dict[str, str]:
    return {
        "title": (form.get("title") or "").strip(),
        "content": (form.get("content") or "").strip(),
        "date": (form.get("date") or "").strip(),
    }


def parse_date_input(value: str) -> Optional[datetime]:
    """``YYYY-MM-DD`` to midnight UTC, or None if it is not a real date."""
    if not _DATE_INPUT_RE.match(value):
        return None
    try:
        return datetime.strptime(value, DATE_INPUT_FMT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


class AdminWorkflow:
    """Login/logout and the gated create, edit and delete operations.

    Every gated method checks the session token before anything else, so a
    caller without a valid token never reaches validation or storage.
    """

    def __init__(
        self,
        store: ArticleStore,
        sessions: SessionRegistry,
        admin_user: str,
        admin_password: str,
    ) -> None:
        self.store = store
        self.sessions = sessions
        self.admin_user = admin_user
        self.admin_password = admin_password

    # -- auth ---------------------------------------------------------------

    def login(self, username: str, password: str) -> str:
        username = (username or "").strip()
        password = (password or "").strip()
        user_ok = secrets.compare_digest(username.encode("utf-8"), self.admin_user.encode("utf-8"))
        pass_ok = secrets.compare_digest(password.encode("utf-8"), self.admin_password.encode("utf-8"))
        if not (user_ok and pass_ok):
            logger.warning("Failed login for %r", username)
            raise InvalidCredentials()
        token = self.sessions.issue()
        logger.info("Admin logged in (%d active sessions)", len(self.sessions))
        return token

    def logout(self, token: Optional[str]) -> None:
        if token:
            self.sessions.revoke(token)
            logger.info("Admin logged out")

    def authorize(self, token: Optional[str]) -> None:
        if not self.sessions.is_valid(token):
            raise Unauthenticated()

    # -- gated operations ---------------------------------------------------

    def dashboard(self, token: Optional[str]) -> List[Article]:
        self.authorize(token)
        return self.store.list()

    def article_for_edit(self, token: Optional[str], slug: str) -> Article:
        self.authorize(token)
        return self.store.load(slug)

    def create(self, token: Optional[str], form: Mapping[str, str]) -> Article:
        self.authorize(token)
        values = read_form(form)
        published = self._validate(values)
        article = Article(
            title=values["title"],
            slug=make_slug(values["title"]),
            content=values["content"],
            published=published,
        )
        if self.store.exists(article.slug):
            raise ValidationError(MSG_DUPLICATE, ValidationError.DUPLICATE, form=values)
        self.store.save(article)
        logger.info("Created article %s", article.slug)
        return article

    def edit(self, token: Optional[str], slug: str, form: Mapping[str, str]) -> Article:
        self.authorize(token)
        original = self.store.load(slug)
        values = read_form(form)
        published = self._validate(values, original)
        updated = Article(
            title=values["title"],
            slug=make_slug(values["title"]),
            content=values["content"],
            published=published,
        )
        if updated.slug == original.slug:
            self.store.save(updated)
            logger.info("Updated article %s", updated.slug)
            return updated

        if self.store.exists(updated.slug):
            raise ValidationError(MSG_DUPLICATE, ValidationError.DUPLICATE, form=values, article=original)
        # New record first: a failure in between leaves a duplicate, never a loss.
        self.store.save(updated)
        self.store.delete(original.slug)
        logger.info("Renamed article %s -> %s", original.slug, updated.slug)
        return updated

    def delete(self, token: Optional[str], slug: str) -> None:
        self.authorize(token)
        if not slug:
            raise ValidationError("Missing article slug", ValidationError.MISSING)
        self.store.delete(slug)
        logger.info("Deleted article %s", slug)

    def _validate(self, values: Dict[str, str], original: Optional[Article] = None) -> datetime:
        if not (values["title"] and values["content"] and values["date"]):
            raise ValidationError(MSG_REQUIRED, ValidationError.MISSING, form=values, article=original)
        published = parse_date_input(values["date"])
        if published is None:
            raise ValidationError(MSG_BAD_DATE, ValidationError.BAD_DATE, form=values, article=original)
        return published
