from __future__ import annotations

from reviewbridge_core.providers.base import BaseAnalyzer


class AnthropicAnalyzer(BaseAnalyzer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'reviewbridge[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)

    def _call_api(self, prompt: str, schema: dict) -> str:
        from anthropic.types import TextBlock

        # The schema is already embedded in the prompt; Anthropic has no
        # separate response-schema parameter for plain messages.
        response = self.client.messages.create(
            model=self.MODEL,
            system="You answer with a single JSON object and no surrounding prose.",
            messages=[{"role": "user", "content": prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
