"""Exceptions raised by the article store, the session gate and the admin workflow."""

from __future__ import annotations

from typing import Dict, Optional


class BlogError(Exception):
    """Base class for every error the blog raises on purpose."""


class InvalidArgument(BlogError):
    pass


class NotFound(BlogError):
    def __init__(self, slug: str) -> None:
        super().__init__(f"No article with slug {slug!r}")
        self.slug = slug


class StorageUnavailable(BlogError):
    pass


class Corrupt(BlogError):
    def __init__(self, path, reason: str) -> None:
        super().__init__(f"Corrupt article record {path}: {reason}")
        self.path = path
        self.reason = reason


class InvalidCredentials(BlogError):
    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class Unauthenticated(BlogError):
    def __init__(self) -> None:
        super().__init__("Login required")


class ValidationError(BlogError):
    """Bad or missing form input.

    ``kind`` is one of ``missing``, ``bad_date`` or ``duplicate``. ``form``
    holds the submitted values and ``article`` the record being edited (if
    any) so the form can be shown again as the user left it.
    """

    MISSING = "missing"
    BAD_DATE = "bad_date"
    DUPLICATE = "duplicate"

    def __init__(
        self,
        message: str,
        kind: str,
        form: Optional[Dict[str, str]] = None,
        article=None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.form = form or {}
        self.article = article
