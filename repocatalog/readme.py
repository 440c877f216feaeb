"""Rewrite relative links and images in a README so they resolve outside GitHub.

This is a textual pass over the markdown, not a parse. Unusual nesting can
produce a broken link but never an exception.
"""

from __future__ import annotations

import re

RAW_BASE = "https://raw.githubusercontent.com/{owner}/{repo}/{branch}"
BLOB_BASE = "https://github.com/{owner}/{repo}/blob/{branch}"

_SCHEME = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")
_MD_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_HTML_IMAGE = re.compile(r"""<img\s+([^>]*?)src=["']([^"']+)["']([^>]*?)>""", re.IGNORECASE)
_MD_LINK = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)]+)\)")
_PATH_END = re.compile(r"[?#]")


def is_absolute(url: str) -> bool:
    return url.startswith(("//", "#")) or bool(_SCHEME.match(url))


def _join(base: str, url: str) -> str:
    """Append a relative ``url`` to ``base``, keeping its query string and fragment."""
    cut = _PATH_END.search(url)
    path, suffix = (url[: cut.start()], url[cut.start():]) if cut else (url, "")
    if path.startswith("./"):
        path = path[2:]
    elif path.startswith("/"):
        path = path[1:]
    return f"{base}/{path}{suffix}"


def rewrite_readme_urls(markdown: str, owner: str, repo: str, branch: str) -> str:
    raw_base = RAW_BASE.format(owner=owner, repo=repo, branch=branch)
    blob_base = BLOB_BASE.format(owner=owner, repo=repo, branch=branch)

    def md_image(m: re.Match) -> str:
        alt, url = m.groups()
        if is_absolute(url):
            return m.group(0)
        return f"![{alt}]({_join(raw_base, url)})"

    def html_image(m: re.Match) -> str:
        before, url, after = m.groups()
        if is_absolute(url):
            return m.group(0)
        return f'<img {before}src="{_join(raw_base, url)}"{after}>'

    def md_link(m: re.Match) -> str:
        text, url = m.groups()
        if is_absolute(url):
            return m.group(0)
        return f"[{text}]({_join(blob_base, url)})"

    result = _MD_IMAGE.sub(md_image, markdown)
    result = _HTML_IMAGE.sub(html_image, result)
    return _MD_LINK.sub(md_link, result)
