from __future__ import annotations

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from reviewbridge_core.providers.base import BaseAnalyzer


class OpenAIAnalyzer(BaseAnalyzer):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. "
                "Install it with: pip install 'reviewbridge[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)

    def _call_api(self, prompt: str, schema: dict) -> str:
        response = self.client.chat.completions.create(
            model=self.MODEL,
            messages=[{"role": "user", "content": prompt}],
            # strict mode would force lineContent to be required
            response_format={
                "type": "json_schema",
                "json_schema": {"name": "pull_request_review", "schema": schema, "strict": False},
            },
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        return response.choices[0].message.content or ""
