"""Tests for AI provider implementations.

Shared behaviour (summarize, _build_system_prompt, _build_user_prompt) lives
in BaseSummarizer and is tested once via a lightweight stub. Provider-specific
tests cover only what differs between implementations.
"""

from datetime import datetime, timezone
from unittest.mock import patch

from prdigest_core.gh.pull_request import Author, ChangedFile, MergeRecord
from prdigest_core.providers.anthropic import AnthropicSummarizer
from prdigest_core.providers.base import EMPTY_SUMMARY, ERROR_PREFIX, BaseSummarizer
from prdigest_core.providers.openai import OpenAISummarizer


def _record(files=None, body="Adds a cache in front of the loader."):
    return MergeRecord(
        number=101,
        title="Add caching",
        html_url="https://github.com/owner/repo/pull/101",
        merged_at=datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc),
        user=Author(login="octocat", html_url="https://github.com/octocat"),
        body=body,
        additions=40,
        deletions=3,
        files=files if files is not None else [ChangedFile("lib/cache.rb", 38, 1), ChangedFile("README.md", 2, 2)],
    )


class _StubSummarizer(BaseSummarizer):
    """Minimal concrete subclass used to test BaseSummarizer shared methods."""

    def __init__(self, reply="### Overview\nAdds caching.", **kwargs):
        super().__init__(**kwargs)
        self.reply = reply
        self.calls = []

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


# ---------------------------------------------------------------------------
# Shared behaviour, tested once through the stub
# ---------------------------------------------------------------------------


class TestSummarize:
    def test_returns_stripped_reply(self):
        assert _StubSummarizer(reply="  Adds caching.\n\n").summarize(_record()) == "Adds caching."

    def test_error_becomes_placeholder(self):
        summarizer = _StubSummarizer(reply=RuntimeError("rate limited"))
        assert summarizer.summarize(_record()) == f"{ERROR_PREFIX}rate limited"

    def test_empty_reply_becomes_placeholder(self):
        assert _StubSummarizer(reply="").summarize(_record()) == EMPTY_SUMMARY
        assert _StubSummarizer(reply=None).summarize(_record()) == EMPTY_SUMMARY

    def test_one_call_per_record(self):
        summarizer = _StubSummarizer()
        summarizer.summarize(_record())
        assert len(summarizer.calls) == 1


class TestPrompts:
    def test_system_prompt_contains_instructions_and_language(self):
        prompt = _StubSummarizer(instructions="## House Rules", language="Japanese")._build_system_prompt()
        assert "## House Rules" in prompt
        assert "Japanese" in prompt

    def test_user_prompt_contains_metadata(self):
        prompt = _StubSummarizer()._build_user_prompt(_record())
        assert "Add caching" in prompt
        assert "#101" in prompt
        assert "octocat" in prompt
        assert "2025-01-15" in prompt
        assert "Adds a cache in front of the loader." in prompt

    def test_user_prompt_lists_files_with_stats(self):
        prompt = _StubSummarizer()._build_user_prompt(_record())
        assert "- lib/cache.rb (+38/-1)" in prompt
        assert "Lines added: 40" in prompt
        assert "Lines removed: 3" in prompt

    def test_file_list_capped(self):
        files = [ChangedFile(f"f{i}.py", 1, 0) for i in range(25)]
        prompt = _StubSummarizer(max_files=20)._build_user_prompt(_record(files=files))
        assert "- f19.py" in prompt
        assert "- f20.py" not in prompt
        assert "... and 5 more file(s)" in prompt
        assert "Files changed: 25" in prompt

    def test_missing_description_and_author(self):
        record = _record(body="")
        record.user = None
        prompt = _StubSummarizer()._build_user_prompt(record)
        assert "No description provided." in prompt
        assert "Author: unknown" in prompt


# ---------------------------------------------------------------------------
# Provider-specific
# ---------------------------------------------------------------------------


class TestAnthropicSummarizer:
    def test_raises_import_error_without_sdk(self):
        with patch.dict("sys.modules", {"anthropic": None}):
            try:
                AnthropicSummarizer(api_key="key")
                assert False, "Expected ImportError"
            except ImportError:
                pass

    def test_model_is_claude(self):
        assert "claude" in AnthropicSummarizer.MODEL

    def test_temperature_is_set(self):
        assert AnthropicSummarizer.TEMPERATURE == 0.3


class TestOpenAISummarizer:
    def test_raises_import_error_without_sdk(self):
        import prdigest_core.providers.openai as openai_mod

        real_openai = openai_mod._OpenAI
        openai_mod._OpenAI = None
        try:
            OpenAISummarizer(api_key="key")
            assert False, "Expected ImportError"
        except ImportError:
            pass
        finally:
            openai_mod._OpenAI = real_openai

    def test_model_is_gpt(self):
        assert "gpt" in OpenAISummarizer.MODEL

    def test_temperature_is_set(self):
        assert OpenAISummarizer.TEMPERATURE == 0.2
