from __future__ import annotations

from google import genai
from google.genai import types

from reviewbridge_core.providers.base import BaseAnalyzer


class GeminiAnalyzer(BaseAnalyzer):
    MODEL = "gemini-3-flash-preview"
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, **kwargs):
        super().__init__(**kwargs)
        self.client = genai.Client(api_key=api_key)

    def _call_api(self, prompt: str, schema: dict) -> str:
        response = self.client.models.generate_content(
            model=self.MODEL,
            contents=prompt,
            config=types.GenerateContentConfig(
                response_mime_type="application/json",
                response_json_schema=schema,
                temperature=self.TEMPERATURE,
                max_output_tokens=self.MAX_TOKENS,
            ),
        )
        return response.text or ""
