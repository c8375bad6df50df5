"""Base summarizer implementing the Template Method pattern.

All providers share the same summarization algorithm:
    summarize() → _build_system_prompt() + _build_user_prompt()
                → _call_api()   ← only this differs per provider
                → placeholder text on failure

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

A failed call never drops the pull request: the error becomes a visible
placeholder summary that is stored and published like any other.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prdigest_core.gh.pull_request import MergeRecord

logger = logging.getLogger(__name__)

_MAX_TOKENS = 1500
_MAX_FILES = 20

EMPTY_SUMMARY = "Could not generate a summary."
ERROR_PREFIX = "Summary error: "


class BaseSummarizer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, instructions: str = "", language: str = "English", max_files: int = _MAX_FILES):
        self.instructions = instructions
        self.language = language
        self.max_files = max_files

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def summarize(self, record: MergeRecord) -> str:
        """Return summary text for one pull request, or a placeholder on failure."""
        system = self._build_system_prompt()
        user = self._build_user_prompt(record)
        try:
            text = self._call_api(system, user)
        except Exception as e:
            logger.error("%s failed to summarize PR #%d: %s", self.__class__.__name__, record.number, e)
            return f"{ERROR_PREFIX}{e}"
        text = (text or "").strip()
        return text or EMPTY_SUMMARY

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make a single API call and return the raw text response.

        This is the only method subclasses must implement. It should raise
        on failure; summarize() turns the error into placeholder text.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_system_prompt(self) -> str:
        return f"""You are a senior software engineer writing a changelog digest.
Write the summary in {self.language}.

{self.instructions}"""

    def _build_user_prompt(self, record: MergeRecord) -> str:
        """Build the per-PR prompt: metadata, description, changed files and statistics."""
        author = record.user.login if record.user else "unknown"
        merged = record.merged_at.isoformat() if record.merged_at else "unknown"
        shown = record.files[: self.max_files]
        file_lines = "\n".join(f"- {f.filename or 'unknown'} (+{f.additions}/-{f.deletions})" for f in shown)
        more = len(record.files) - len(shown)
        if more > 0:
            file_lines += f"\n... and {more} more file(s)"

        return f"""Summarize this merged pull request.

## Pull Request
- Title: {record.title}
- Number: #{record.number}
- Author: {author}
- Merged at: {merged}

## Description
{record.body or "No description provided."}

## Changed Files (first {self.max_files})
{file_lines or "- none"}

## Statistics
- Files changed: {len(record.files)}
- Lines added: {record.additions}
- Lines removed: {record.deletions}"""
