from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utc_now_iso() -> str:
    """Current UTC time as ``2024-01-31T12:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RepoConfig:
    """One repository listed in the catalog file."""

    owner: str
    repo: str
    featured: bool = False
    custom_tags: tuple[str, ...] = ()

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass
class CacheEntry:
    """What the disk cache remembers about one repository between runs."""

    updated_at: str
    metadata: dict[str, Any]
    topics: list[str] = field(default_factory=list)
    readme: str = ""
    fetched_at: str = ""
    etag: str | None = None

    @classmethod
    def from_dict(cls, raw: dict) -> CacheEntry:
        return cls(
            etag=raw.get("etag"),
            updated_at=raw.get("updatedAt", ""),
            metadata=raw["metadata"],
            topics=raw.get("topics") or [],
            readme=raw.get("readme", ""),
            fetched_at=raw.get("fetchedAt", ""),
        )

    def to_dict(self) -> dict:
        data: dict = {}
        if self.etag:
            data["etag"] = self.etag
        data.update(
            updatedAt=self.updated_at,
            metadata=self.metadata,
            topics=self.topics,
            readme=self.readme,
            fetchedAt=self.fetched_at,
        )
        return data


@dataclass
class Project:
    """Normalized representation of a catalog repository."""

    slug: str
    title: str
    description: str
    owner: str
    repo: str
    tags: list[str]
    stars: int
    updated_at: str
    homepage: str | None
    html_url: str
    default_branch: str
    featured: bool = False

    @classmethod
    def from_github(
        cls, metadata: dict, entry: RepoConfig, slug: str, tags: list[str]
    ) -> Project:
        """Build from a ``GET /repos/{owner}/{repo}`` payload."""
        return cls(
            slug=slug,
            title=metadata["name"],
            description=metadata.get("description") or "",
            owner=entry.owner,
            repo=entry.repo,
            tags=tags,
            stars=metadata.get("stargazers_count", 0),
            updated_at=metadata.get("pushed_at") or metadata.get("updated_at") or "",
            homepage=metadata.get("homepage") or None,
            html_url=metadata["html_url"],
            default_branch=metadata.get("default_branch") or "main",
            featured=entry.featured,
        )

    def frontmatter_fields(self) -> dict:
        """Fields exposed to the site's content collection. The slug comes from the filename."""
        return {
            "title": self.title,
            "description": self.description,
            "owner": self.owner,
            "repo": self.repo,
            "tags": self.tags,
            "stars": self.stars,
            "updatedAt": self.updated_at,
            "homepage": self.homepage,
            "htmlUrl": self.html_url,
            "defaultBranch": self.default_branch,
            "featured": self.featured,
        }

    def to_dict(self) -> dict:
        return {"slug": self.slug, **self.frontmatter_fields()}


@dataclass
class FetchedProject:
    project: Project
    readme: str
    cache_hit: bool = False


@dataclass
class ProjectsIndex:
    projects: list[Project]
    all_tags: list[str]
    generated_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "allTags": self.all_tags,
            "generatedAt": self.generated_at,
        }


@dataclass
class Profile:
    username: str
    readme: str
    fetched_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {"username": self.username, "readme": self.readme, "fetchedAt": self.fetched_at}


@dataclass
class ContributionDay:
    date: str
    count: int
    level: int

    def to_dict(self) -> dict:
        return {"date": self.date, "count": self.count, "level": self.level}


@dataclass
class Contributions:
    username: str
    contributions: list[ContributionDay]
    total_contributions: int
    fetched_at: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict:
        return {
            "contributions": [d.to_dict() for d in self.contributions],
            "totalContributions": self.total_contributions,
            "username": self.username,
            "fetchedAt": self.fetched_at,
        }
