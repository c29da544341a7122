from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional, Tuple

from json_repair import repair_json

from app.core.settings import Settings

logger = logging.getLogger(__name__)

# (mime_type, raw bytes) of one inline media part
Media = Tuple[str, bytes]


def parse_model_json(text: str) -> Any:
    """Parse the model's JSON answer, tolerating prose around it and small syntax slips."""
    m = re.search(r"\{.*\}", text, re.DOTALL)
    candidates = [text] + ([m.group(0)] if m else [])
    for candidate in candidates:
        try:
            return json.loads(candidate)
        except ValueError:
            continue

    candidate = candidates[-1]
    try:
        return json.loads(repair_json(candidate))
    except ValueError as e:
        raise ValueError(
            f"Model returned invalid JSON even after repair: {e}. First 400 chars: {candidate[:400]!r}"
        ) from e


class GeminiLLM:
    def __init__(self, api_key: str, model: str, temperature: float, max_tokens: int):
        from google import genai
        from google.genai import types

        self._types = types
        self.client = genai.Client(api_key=api_key)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def generate_json(
        self,
        system: str,
        user: str,
        schema_hint: str = "",
        media: Optional[Media] = None,
    ) -> Any:
        prompt = user if not schema_hint else f"{user}\n\nReturn JSON following this schema:\n{schema_hint}"

        contents: list[Any] = [prompt]
        if media is not None:
            mime_type, data = media
            contents.append(self._types.Part.from_bytes(data=data, mime_type=mime_type))

        logger.debug(f"Gemini request: model={self.model}, media={media[0] if media else None}")
        resp = self.client.models.generate_content(
            model=self.model,
            contents=contents,
            config=self._types.GenerateContentConfig(
                system_instruction=[system],
                response_mime_type="application/json",
                temperature=self.temperature,
                max_output_tokens=self.max_tokens,
            ),
        )

        txt = (resp.text or "").strip()
        if not txt:
            return None
        return parse_model_json(txt)


def build_llm(settings: Settings) -> GeminiLLM:
    """Gemini is the only provider; the key comes from GEMINI_API_KEY in the environment or .env."""
    provider = (settings.llm_provider or "").lower().strip()
    if provider != "gemini":
        raise ValueError(f"Unsupported llm provider: {settings.llm_provider}. Use provider: gemini")
    if not settings.GEMINI_API_KEY:
        raise ValueError("GEMINI_API_KEY is missing. Add it to .env")

    return GeminiLLM(
        api_key=settings.GEMINI_API_KEY,
        model=settings.llm_model,
        temperature=float(settings.llm_temperature),
        max_tokens=int(settings.llm_max_tokens),
    )
