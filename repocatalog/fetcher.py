from __future__ import annotations

import base64
import binascii

from loguru import logger

from repocatalog.cache import DiskCache
from repocatalog.errors import DecodeFailure, EntryFailure, FetchError, GitHubError
from repocatalog.github import GitHubClient
from repocatalog.models import CacheEntry, FetchedProject, Project, RepoConfig, utc_now_iso
from repocatalog.normalize import create_slug, normalize_tags
from repocatalog.readme import rewrite_readme_urls


def placeholder_readme(repo: str) -> str:
    return f"# {repo}\n\nNo README available."


def decode_readme(payload: dict | None) -> str:
    """Decode the base64 body of a ``GET /repos/{owner}/{repo}/readme`` payload."""
    if not payload or "content" not in payload:
        raise DecodeFailure("README payload has no content")
    try:
        raw = base64.b64decode(payload["content"])
    except (binascii.Error, TypeError, ValueError) as exc:
        raise DecodeFailure(f"Invalid base64 README: {exc}") from exc
    return raw.decode("utf-8", errors="replace")


def _fetch_topics(client: GitHubClient, entry: RepoConfig) -> list[str]:
    try:
        result = client.fetch(f"/repos/{entry.owner}/{entry.repo}/topics")
    except GitHubError as exc:
        logger.warning("Topics unavailable for {}: {}", entry.full_name, exc)
        return []
    return (result.data or {}).get("names") or []


def _fetch_readme(client: GitHubClient, entry: RepoConfig, branch: str) -> str:
    try:
        result = client.fetch(f"/repos/{entry.owner}/{entry.repo}/readme")
        readme = decode_readme(result.data)
    except (GitHubError, DecodeFailure) as exc:
        logger.info("No README for {}: {}", entry.full_name, exc)
        return placeholder_readme(entry.repo)
    return rewrite_readme_urls(readme, entry.owner, entry.repo, branch)


def fetch_repo(client: GitHubClient, cache: DiskCache, entry: RepoConfig) -> FetchedProject:
    """Fetch metadata, topics and README for one catalog entry.

    The metadata request carries the cached ETag; on 304 every cached field is
    reused and no further request is made. Any failure is raised as
    ``EntryFailure`` so the caller can drop the entry and carry on.
    """
    logger.info("Fetching {}…", entry.full_name)
    try:
        cached = cache.read(entry.owner, entry.repo)
        meta = client.fetch(
            f"/repos/{entry.owner}/{entry.repo}",
            etag=cached.etag if cached else None,
        )

        cache_hit = False
        if meta.not_modified and cached is not None:
            logger.info("Cache hit for {} (not modified)", entry.full_name)
            cache_hit = True
            metadata, topics, readme = cached.metadata, cached.topics, cached.readme
        elif meta.data:
            metadata = meta.data
            topics = _fetch_topics(client, entry)
            readme = _fetch_readme(client, entry, metadata.get("default_branch") or "main")
            cache.write(
                entry.owner,
                entry.repo,
                CacheEntry(
                    etag=meta.etag,
                    updated_at=metadata.get("updated_at", ""),
                    metadata=metadata,
                    topics=topics,
                    readme=readme,
                    fetched_at=utc_now_iso(),
                ),
            )
        else:
            raise FetchError("No data received")

        project = Project.from_github(
            metadata,
            entry,
            slug=create_slug(entry.owner, entry.repo),
            tags=normalize_tags(topics, entry.custom_tags),
        )
    except Exception as exc:
        raise EntryFailure(entry, exc) from exc

    logger.info("OK {} ({} stars, {} tags)", entry.full_name, project.stars, len(project.tags))
    return FetchedProject(project=project, readme=readme, cache_hit=cache_hit)
