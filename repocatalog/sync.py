from __future__ import annotations

import json
import shutil
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from repocatalog.cache import DiskCache
from repocatalog.config import Config
from repocatalog.errors import (
    ConfigError,
    DecodeFailure,
    EntryFailure,
    GitHubError,
    SyncError,
)
from repocatalog.fetcher import decode_readme, fetch_repo
from repocatalog.github import GitHubClient
from repocatalog.models import (
    ContributionDay,
    Contributions,
    FetchedProject,
    Profile,
    Project,
    ProjectsIndex,
    RepoConfig,
    utc_now_iso,
)
from repocatalog.readme import rewrite_readme_urls

CONCURRENCY_LIMIT = 4
PROFILE_BRANCH = "main"

CONTRIBUTIONS_QUERY = """\
query($username: String!) {
  user(login: $username) {
    contributionsCollection {
      contributionCalendar {
        totalContributions
        weeks {
          contributionDays {
            date
            contributionCount
            contributionLevel
          }
        }
      }
    }
  }
}
"""

CONTRIBUTION_LEVELS = {
    "NONE": 0,
    "FIRST_QUARTILE": 1,
    "SECOND_QUARTILE": 2,
    "THIRD_QUARTILE": 3,
    "FOURTH_QUARTILE": 4,
}


@dataclass
class SyncStats:
    success: int = 0
    failed: int = 0
    cache_hits: int = 0
    tags: int = 0
    profile: bool = False
    contributions: int | None = None

    @classmethod
    def from_results(cls, results: Sequence[FetchedProject | None]) -> SyncStats:
        ok = [r for r in results if r is not None]
        return cls(
            success=len(ok),
            failed=len(results) - len(ok),
            cache_hits=sum(1 for r in ok if r.cache_hit),
        )

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


# -- fan-out ----------------------------------------------------------------


def fetch_all(
    entries: Sequence[RepoConfig],
    fetch_one: Callable[[RepoConfig], FetchedProject],
    concurrency: int = CONCURRENCY_LIMIT,
) -> list[FetchedProject | None]:
    """Run ``fetch_one`` over every entry with at most ``concurrency`` in flight.

    ``concurrency`` is capped at ``CONCURRENCY_LIMIT``. Results keep catalog
    order; a failed entry is logged and left as ``None``.
    """
    if concurrency < 1:
        raise ConfigError(f"concurrency must be at least 1, got {concurrency}")
    results: list[FetchedProject | None] = [None] * len(entries)
    if not entries:
        return results

    with ThreadPoolExecutor(max_workers=min(concurrency, CONCURRENCY_LIMIT)) as pool:
        futures = {pool.submit(fetch_one, entry): i for i, entry in enumerate(entries)}
        for future in as_completed(futures):
            i = futures[future]
            try:
                results[i] = future.result()
            except EntryFailure as exc:
                logger.error("FAILED {}: {}", entries[i].full_name, exc.cause)
    return results


def sort_projects(fetched: Iterable[FetchedProject]) -> list[FetchedProject]:
    """Featured projects first, then by star count, both descending."""
    return sorted(fetched, key=lambda f: (not f.project.featured, -f.project.stars))


def collect_tags(projects: Iterable[Project]) -> list[str]:
    return sorted({tag for p in projects for tag in p.tags})


# -- artifacts --------------------------------------------------------------


def _write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")


def render_frontmatter(project: Project) -> str:
    lines = [
        f"{key}: {json.dumps(value, ensure_ascii=False)}"
        for key, value in project.frontmatter_fields().items()
    ]
    return "---\n" + "\n".join(lines) + "\n---"


def render_markdown(project: Project, readme: str) -> str:
    return f"{render_frontmatter(project)}\n\n{readme}"


def write_projects(
    fetched: Sequence[FetchedProject], generated_dir: Path, content_dir: Path
) -> ProjectsIndex:
    """Write ``projects.json`` and rebuild the per-project markdown directory."""
    projects = [f.project for f in fetched]
    index = ProjectsIndex(projects=projects, all_tags=collect_tags(projects))
    _write_json(generated_dir / "projects.json", index.to_dict())

    if content_dir.exists():
        shutil.rmtree(content_dir)
    content_dir.mkdir(parents=True)
    for f in fetched:
        (content_dir / f"{f.project.slug}.md").write_text(
            render_markdown(f.project, f.readme), encoding="utf-8"
        )
    return index


# -- profile and contributions ---------------------------------------------


def fetch_profile(client: GitHubClient, username: str) -> Profile | None:
    """Fetch the ``username/username`` profile README, or ``None`` if there is none."""
    logger.info("Fetching profile README for {}…", username)
    try:
        result = client.fetch(f"/repos/{username}/{username}/readme")
        if not result.data:
            logger.info("No profile README found for {}", username)
            return None
        readme = decode_readme(result.data)
    except (GitHubError, DecodeFailure) as exc:
        logger.warning("Profile README skipped: {}", exc)
        return None

    readme = rewrite_readme_urls(readme, username, username, PROFILE_BRANCH)
    logger.info("Profile README OK ({} chars)", len(readme))
    return Profile(username=username, readme=readme)


def flatten_calendar(calendar: dict) -> list[ContributionDay]:
    return [
        ContributionDay(
            date=day["date"],
            count=day["contributionCount"],
            level=CONTRIBUTION_LEVELS.get(day.get("contributionLevel"), 0),
        )
        for week in calendar.get("weeks") or []
        for day in week.get("contributionDays") or []
    ]


def fetch_contributions(client: GitHubClient, username: str) -> Contributions | None:
    """Fetch the contribution calendar. Needs a token; skipped without one."""
    logger.info("Fetching contributions for {}…", username)
    if not client.has_token:
        logger.info("Contributions skipped: GITHUB_TOKEN required")
        return None

    try:
        data = client.graphql(CONTRIBUTIONS_QUERY, {"username": username})
        calendar = (
            ((data.get("user") or {}).get("contributionsCollection") or {})
            .get("contributionCalendar")
        )
        if not calendar:
            logger.info("No contribution data found for {}", username)
            return None
        days = flatten_calendar(calendar)
        total = calendar["totalContributions"]
    except (SyncError, KeyError, TypeError, AttributeError) as exc:
        logger.warning("Contributions skipped: {}", exc)
        return None

    logger.info("Contributions OK ({} contributions, {} days)", total, len(days))
    return Contributions(username=username, contributions=days, total_contributions=total)


# -- driver -----------------------------------------------------------------


def run_sync(config: Config, client: GitHubClient, entries: Sequence[RepoConfig]) -> SyncStats:
    """Fetch every catalog entry, write all artifacts and return the run's tallies."""
    cache = DiskCache(config.cache_dir)
    config.generated_dir.mkdir(parents=True, exist_ok=True)

    logger.info(
        "Syncing {} repositories (concurrency={})",
        len(entries),
        min(config.sync_concurrency, CONCURRENCY_LIMIT),
    )
    results = fetch_all(
        entries,
        lambda entry: fetch_repo(client, cache, entry),
        config.sync_concurrency,
    )
    stats = SyncStats.from_results(results)

    fetched = sort_projects(r for r in results if r is not None)
    index = write_projects(fetched, config.generated_dir, config.content_dir)
    stats.tags = len(index.all_tags)

    username = config.profile_username or (entries[0].owner if entries else "")
    profile = fetch_profile(client, username) if username else None
    _write_json(
        config.generated_dir / "profile.json",
        {"profile": profile.to_dict() if profile else None, "fetchedAt": utc_now_iso()},
    )
    stats.profile = profile is not None

    contributions = fetch_contributions(client, username) if username else None
    _write_json(
        config.generated_dir / "contributions.json",
        contributions.to_dict() if contributions else None,
    )
    if contributions:
        stats.contributions = contributions.total_contributions

    _print_summary(stats, config, len(fetched))
    return stats


def _print_summary(stats: SyncStats, config: Config, files: int) -> None:
    contributions = (
        f"{stats.contributions} total" if stats.contributions is not None else "Not found"
    )
    print(f"\n{'=' * 60}")
    print(" Sync Complete")
    print(f"{'=' * 60}")
    print(f"  Success       : {stats.success}")
    print(f"  Failed        : {stats.failed}")
    print(f"  Cache hits    : {stats.cache_hits}")
    print(f"  Tags          : {stats.tags}")
    print(f"  Profile       : {'OK' if stats.profile else 'Not found'}")
    print(f"  Contributions : {contributions}")
    print("\n  Generated:")
    print(f"    - {config.generated_dir / 'projects.json'}")
    print(f"    - {config.generated_dir / 'profile.json'}")
    print(f"    - {config.generated_dir / 'contributions.json'}")
    print(f"    - {config.content_dir}/*.md ({files} files)")
    print(f"{'=' * 60}\n")
