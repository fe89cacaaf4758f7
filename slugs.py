from __future__ import annotations

import re
import time

_DISALLOWED = re.compile(r"[^a-z0-9-]")
_VALID = re.compile(r"^[a-z0-9-]+$")


def make_slug(title: str) -> str:
    """Turn a title into a URL-safe storage key.

    Characters outside ``[a-z0-9-]`` are dropped, not transliterated. A title
    with nothing usable left gets ``post-<unix seconds>``.
    """
    s = (title or "").strip().lower()
    s = s.replace(" ", "-").replace("_", "-")
    slug = _DISALLOWED.sub("", s)
    if not slug:
        slug = f"post-{int(time.time())}"
    return slug


def is_valid_slug(value: str) -> bool:
    return bool(value) and bool(_VALID.match(value))
