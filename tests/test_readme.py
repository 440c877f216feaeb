from __future__ import annotations

from repocatalog.readme import is_absolute, rewrite_readme_urls

RAW = "https://raw.githubusercontent.com/o/r/main"
BLOB = "https://github.com/o/r/blob/main"


def rewrite(text: str) -> str:
    return rewrite_readme_urls(text, "o", "r", "main")


def test_markdown_image_points_at_raw_content() -> None:
    assert rewrite("![alt](images/pic.png)") == f"![alt]({RAW}/images/pic.png)"


def test_image_path_prefixes_are_stripped_and_suffix_kept() -> None:
    text = "![a](./img/a.png?raw=true) ![b](/img/b.png#dark)"
    assert rewrite(text) == f"![a]({RAW}/img/a.png?raw=true) ![b]({RAW}/img/b.png#dark)"


def test_html_image_src_is_rewritten() -> None:
    text = "<p><img alt=\"logo\" src='assets/logo.svg' width=\"120\"></p>"
    assert rewrite(text) == f'<p><img alt="logo" src="{RAW}/assets/logo.svg" width="120"></p>'


def test_relative_link_points_at_blob_view() -> None:
    text = "See [the guide](docs/guide.md#setup) and [license](./LICENSE)."
    assert rewrite(text) == (
        f"See [the guide]({BLOB}/docs/guide.md#setup) and [license]({BLOB}/LICENSE)."
    )


def test_image_is_not_rewritten_twice() -> None:
    assert rewrite("![shot](shot.png)") == f"![shot]({RAW}/shot.png)"


def test_absolute_references_are_left_alone() -> None:
    text = (
        "# Title\n"
        "![badge](https://img.shields.io/badge/x-y-green.svg)\n"
        '<img src="//cdn.example.com/a.png">\n'
        "[home](http://example.com) [mail](mailto:me@example.com) "
        "[top](#title) [cdn](//cdn.example.com/x)\n"
    )
    assert rewrite(text) == text


def test_custom_branch_is_used() -> None:
    out = rewrite_readme_urls("[src](src/main.rs)", "acme", "tool", "develop")
    assert out == "[src](https://github.com/acme/tool/blob/develop/src/main.rs)"


def test_malformed_markdown_does_not_raise() -> None:
    text = "[unclosed](  ![](  <img src=> ]("
    assert rewrite(text) == text


def test_is_absolute() -> None:
    assert is_absolute("https://x")
    assert is_absolute("mailto:a@b")
    assert is_absolute("//x")
    assert is_absolute("#frag")
    assert not is_absolute("docs/a.md")
    assert not is_absolute("./a.png")
