from __future__ import annotations

from prdigest_core.providers.base import BaseSummarizer


class AnthropicSummarizer(BaseSummarizer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, **kwargs):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install anthropic"
            )
        super().__init__(**kwargs)
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        # Imported here because the anthropic package is optional;
        # __init__ already validated it is installed.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.MODEL,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
