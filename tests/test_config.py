from __future__ import annotations

from pathlib import Path

import pytest

from repocatalog.config import Config, load_catalog
from repocatalog.errors import ConfigError
from repocatalog.models import RepoConfig


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "repos.yaml"
    path.write_text(text)
    return path


def test_load_catalog_keeps_order_and_defaults(tmp_path) -> None:
    path = write(
        tmp_path,
        """
repos:
  - owner: acme
    repo: rocket
    featured: true
    custom_tags: [space, Launch Tools]
  - owner: acme
    repo: anvil
""",
    )
    assert load_catalog(path) == [
        RepoConfig("acme", "rocket", featured=True, custom_tags=("space", "Launch Tools")),
        RepoConfig("acme", "anvil"),
    ]


def test_load_catalog_accepts_bare_list(tmp_path) -> None:
    path = write(tmp_path, "- {owner: a, repo: b}\n")
    assert load_catalog(path) == [RepoConfig("a", "b")]


def test_load_catalog_empty_file(tmp_path) -> None:
    assert load_catalog(write(tmp_path, "")) == []


@pytest.mark.parametrize(
    "text",
    [
        "repos:\n  - owner: a\n",
        "repos:\n  - just-a-string\n",
        "repos:\n  - {owner: a, repo: b, custom_tags: nope}\n",
        "repos: {owner: a}\n",
        "repos: [unclosed\n",
    ],
)
def test_load_catalog_rejects_malformed_entries(tmp_path, text) -> None:
    with pytest.raises(ConfigError):
        load_catalog(write(tmp_path, text))


def test_load_catalog_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_catalog(tmp_path / "nope.yaml")


def test_config_from_env(monkeypatch) -> None:
    monkeypatch.setenv("GITHUB_TOKEN", "tok")
    monkeypatch.setenv("REPOS_CONFIG", "catalog.yaml")
    monkeypatch.setenv("SYNC_CONCURRENCY", "2")
    monkeypatch.setenv("PROFILE_USERNAME", "me")

    config = Config.from_env()

    assert config.github_token == "tok"
    assert config.repos_config == Path("catalog.yaml")
    assert config.sync_concurrency == 2
    assert config.profile_username == "me"


def test_config_defaults(monkeypatch) -> None:
    for name in (
        "GITHUB_TOKEN",
        "REPOS_CONFIG",
        "CACHE_DIR",
        "GENERATED_DIR",
        "CONTENT_DIR",
        "SYNC_CONCURRENCY",
        "PROFILE_USERNAME",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("repocatalog.config.load_dotenv", lambda: False)

    config = Config.from_env()

    assert config.github_token == ""
    assert config.cache_dir == Path(".cache/repos")
    assert config.generated_dir == Path("src/generated")
    assert config.content_dir == Path("src/content/projects")
    assert config.sync_concurrency == 4


@pytest.mark.parametrize("value", [0, -2])
def test_config_rejects_concurrency_below_one(value) -> None:
    with pytest.raises(ConfigError):
        Config(sync_concurrency=value)


@pytest.mark.parametrize("raw", ["0", "-1", "four"])
def test_config_from_env_rejects_bad_concurrency(monkeypatch, raw) -> None:
    monkeypatch.setenv("SYNC_CONCURRENCY", raw)
    with pytest.raises(ConfigError):
        Config.from_env()
