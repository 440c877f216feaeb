from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

from repocatalog.errors import ConfigError
from repocatalog.models import RepoConfig


@dataclass
class Config:
    github_token: str = ""
    repos_config: Path = Path("repos.yaml")
    cache_dir: Path = Path(".cache/repos")
    generated_dir: Path = Path("src/generated")
    content_dir: Path = Path("src/content/projects")
    sync_concurrency: int = 4
    profile_username: str = ""

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.sync_concurrency < 1:
            raise ConfigError(
                f"SYNC_CONCURRENCY must be at least 1, got {self.sync_concurrency}"
            )

    @classmethod
    def from_env(cls) -> Config:
        load_dotenv()

        raw_concurrency = os.environ.get("SYNC_CONCURRENCY", "4")
        try:
            concurrency = int(raw_concurrency)
        except ValueError as exc:
            raise ConfigError(
                f"SYNC_CONCURRENCY must be an integer, got {raw_concurrency!r}"
            ) from exc

        return cls(
            github_token=os.environ.get("GITHUB_TOKEN", ""),
            repos_config=Path(os.environ.get("REPOS_CONFIG", "repos.yaml")),
            cache_dir=Path(os.environ.get("CACHE_DIR", ".cache/repos")),
            generated_dir=Path(os.environ.get("GENERATED_DIR", "src/generated")),
            content_dir=Path(os.environ.get("CONTENT_DIR", "src/content/projects")),
            sync_concurrency=concurrency,
            profile_username=os.environ.get("PROFILE_USERNAME", ""),
        )


def _parse_entry(raw: object, index: int) -> RepoConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"Entry #{index} must be a mapping, got {type(raw).__name__}")
    owner, repo = raw.get("owner"), raw.get("repo")
    if not owner or not repo:
        raise ConfigError(f"Entry #{index} needs both 'owner' and 'repo'")
    custom_tags = raw.get("custom_tags") or []
    if not isinstance(custom_tags, list):
        raise ConfigError(f"Entry #{index} ({owner}/{repo}): 'custom_tags' must be a list")
    return RepoConfig(
        owner=str(owner),
        repo=str(repo),
        featured=bool(raw.get("featured", False)),
        custom_tags=tuple(str(t) for t in custom_tags),
    )


def load_catalog(path: Path | str) -> list[RepoConfig]:
    """Load the ordered list of catalog entries from a YAML file.

    The file holds a top-level ``repos`` list (a bare list is accepted too)::

        repos:
          - owner: octocat
            repo: hello-world
            featured: true
            custom_tags: [demo, example]
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: invalid YAML: {exc}") from exc

    entries = data.get("repos") if isinstance(data, dict) else data
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigError(f"{path}: 'repos' must be a list")
    return [_parse_entry(raw, i) for i, raw in enumerate(entries, start=1)]
