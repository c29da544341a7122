from __future__ import annotations

import base64
from typing import Any

import pytest

from app.flows.analyze_file import AnalyzeFileFlow

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNk+M9QDwADhgGAWjR9awAAAABJRU5ErkJggg=="
)


class FakeLLM:
    def __init__(self, output: Any = None, error: Exception | None = None):
        self.output = output
        self.error = error
        self.calls: list[dict] = []

    def generate_json(self, system, user, schema_hint="", media=None):
        self.calls.append({"system": system, "user": user, "schema_hint": schema_hint, "media": media})
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
def png_bytes():
    return PNG_BYTES


@pytest.fixture
def png_data_uri():
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def fake_llm():
    return FakeLLM(output={"analysis": "Bold contrast makes it instantly shareable."})


@pytest.fixture
def flow(fake_llm):
    return AnalyzeFileFlow(llm=fake_llm)
