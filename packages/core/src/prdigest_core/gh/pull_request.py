from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

import requests
from github import Github, GithubException

logger = logging.getLogger(__name__)


@dataclass
class Author:
    login: str
    html_url: str


@dataclass
class ChangedFile:
    filename: str
    additions: int = 0
    deletions: int = 0


@dataclass
class MergeRecord:
    """A merged pull request as seen by the digest.

    Search results fill only the identifying fields; get_pull_details()
    returns a complete record with body, statistics and changed files.
    """

    number: int
    title: str
    html_url: str
    merged_at: datetime | None = None
    user: Author | None = None
    body: str = ""
    additions: int = 0
    deletions: int = 0
    files: list[ChangedFile] = field(default_factory=list)


def get_client(token: str) -> Github:
    return Github(token)


def _author(user) -> Author | None:
    if user is None:
        return None
    return Author(login=user.login, html_url=user.html_url)


def _utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def merged_query(repo_name: str, since: datetime) -> str:
    return f"repo:{repo_name} is:pr is:merged merged:>={since:%Y-%m-%d}"


def search_merged_pulls(
    gh: Github,
    repo_name: str,
    days: int = 1,
    max_results: int = 100,
    now: datetime | None = None,
) -> list[MergeRecord]:
    """Return pull requests merged within the trailing window, most recently updated first.

    A failed search is logged and treated as "nothing merged" so one bad API
    call does not abort the run.
    """
    now = now or datetime.now(timezone.utc)
    query = merged_query(repo_name, now - timedelta(days=days))
    try:
        issues = list(itertools.islice(gh.search_issues(query, sort="updated", order="desc"), max_results))
    except (GithubException, requests.RequestException) as e:
        logger.error("Error fetching merged PRs for %s: %s", repo_name, e)
        return []

    return [
        MergeRecord(
            number=issue.number,
            title=issue.title,
            html_url=issue.html_url,
            # Search hits are issues; for a merged PR the close time is the merge time.
            merged_at=_utc(issue.closed_at),
            user=_author(issue.user),
            body=issue.body or "",
        )
        for issue in issues
    ]


def get_pull_details(repo, pr_number: int) -> MergeRecord | None:
    """Fetch the full record for one pull request, or None if GitHub refuses."""
    try:
        pr = repo.get_pull(pr_number)
        files = [
            ChangedFile(filename=f.filename, additions=f.additions, deletions=f.deletions) for f in pr.get_files()
        ]
    except (GithubException, requests.RequestException) as e:
        logger.error("Error fetching PR #%d details: %s", pr_number, e)
        return None

    return MergeRecord(
        number=pr.number,
        title=pr.title,
        html_url=pr.html_url,
        merged_at=_utc(pr.merged_at),
        user=_author(pr.user),
        body=pr.body or "",
        additions=pr.additions,
        deletions=pr.deletions,
        files=files,
    )
