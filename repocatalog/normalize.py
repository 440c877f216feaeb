from __future__ import annotations

import re
from collections.abc import Iterable

_INVALID_CHARS = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-+")


def create_slug(owner: str, repo: str) -> str:
    """Build the URL-safe ``owner-repo`` identifier used for content filenames."""
    return _INVALID_CHARS.sub("-", f"{owner}-{repo}".lower())


def normalize_tag(tag: str) -> str:
    tag = _INVALID_CHARS.sub("-", tag.lower().strip())
    return _HYPHEN_RUNS.sub("-", tag).strip("-")


def normalize_tags(topics: Iterable[str], custom_tags: Iterable[str] = ()) -> list[str]:
    """Merge GitHub topics and custom tags into a sorted, deduplicated kebab-case list."""
    tags = {normalize_tag(t) for t in [*topics, *custom_tags]}
    tags.discard("")
    return sorted(tags)
