"""
Prompt flow that asks the model why an uploaded file connects with its audience.

- AnalyzeFileFlow.run - validates the input, makes one model call, validates the output.
- AnalyzeFileInput / AnalyzeFileOutput - the flow's declared input and output shapes.

One call, one response: no retry, no streaming, no multi-turn.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional, TypedDict

from langgraph.graph import END, StateGraph
from pydantic import ValidationError

from app.core.errors import OutputMissingError
from app.core.settings import Settings, get_settings
from app.schemas.analysis import AnalyzeFileInput, AnalyzeFileOutput
from app.services.file_encoder import parse_data_uri
from app.services.llm_client import build_llm

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    'You are an expert in analyzing files to determine their "why" - '
    "what makes the media connect with its audience."
)

ANALYZE_FILE_PROMPT = (
    "Analyze the provided file and provide insights into its potential impact, "
    "what audience segments it will resonate with, and what makes it connect with its audience.\n\n"
    "File:"
)

OUTPUT_SCHEMA_HINT = json.dumps(AnalyzeFileOutput.model_json_schema(), indent=2)


class AnalyzeFileState(TypedDict, total=False):
    file_data_uri: str
    raw_output: Any
    analysis: str


def validate_input(data: Any) -> AnalyzeFileInput:
    if isinstance(data, AnalyzeFileInput):
        return data
    return AnalyzeFileInput.model_validate(data)


def validate_output(raw: Any) -> AnalyzeFileOutput:
    if not isinstance(raw, dict):
        raise OutputMissingError()
    try:
        return AnalyzeFileOutput.model_validate(raw)
    except ValidationError as e:
        raise OutputMissingError(f"Model output did not match the expected shape: {e.error_count()} error(s).") from e


class AnalyzeFileFlow:
    def __init__(self, llm=None, settings: Optional[Settings] = None):
        self.settings = settings
        self._llm = llm
        self.graph = self._build_graph()

    @property
    def llm(self):
        # Built on first use so a missing API key fails the call, not the import.
        if self._llm is None:
            self._llm = build_llm(self.settings or get_settings())
        return self._llm

    def run(self, data: Any) -> AnalyzeFileOutput:
        payload = validate_input(data)
        out = self.graph.invoke({"file_data_uri": payload.file_data_uri})
        return AnalyzeFileOutput(analysis=out["analysis"])

    def _node_prompt(self, state: AnalyzeFileState) -> AnalyzeFileState:
        mime_type, data = parse_data_uri(state["file_data_uri"])

        started = time.time()
        logger.info(f"Calling model for file analysis (mime={mime_type}, bytes={len(data)})")
        raw = self.llm.generate_json(
            system=SYSTEM_PROMPT,
            user=ANALYZE_FILE_PROMPT,
            schema_hint=OUTPUT_SCHEMA_HINT,
            media=(mime_type, data),
        )
        logger.info(f"Model call finished in {time.time() - started:.2f}s")
        return {**state, "raw_output": raw}

    def _node_output(self, state: AnalyzeFileState) -> AnalyzeFileState:
        output = validate_output(state.get("raw_output"))
        return {**state, "analysis": output.analysis}

    def _build_graph(self):
        g = StateGraph(AnalyzeFileState)

        g.add_node("prompt", self._node_prompt)
        g.add_node("output", self._node_output)

        g.set_entry_point("prompt")
        g.add_edge("prompt", "output")
        g.add_edge("output", END)

        return g.compile()


def analyze_file(data: Any, flow: Optional[AnalyzeFileFlow] = None) -> AnalyzeFileOutput:
    return (flow or get_analyze_flow()).run(data)


_flow: Optional[AnalyzeFileFlow] = None


def get_analyze_flow() -> AnalyzeFileFlow:
    global _flow
    if _flow is None:
        _flow = AnalyzeFileFlow()
    return _flow
