"""
Upload page state machine.

``transition(state, event)`` is pure: it never touches previews, files or the
network. ``app.ui.session.AnalysisSession`` runs those effects around it.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Optional, Union

from app.services.file_encoder import (
    ACCEPTED_FILE_TYPES,
    MAX_FILE_SIZE,
    SelectedFile,
    validate_file,
)


class Status(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file-selected"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class UIState:
    status: Status = Status.IDLE
    file: Optional[SelectedFile] = None
    preview_url: Optional[str] = None
    analysis: Optional[str] = None
    error: Optional[str] = None
    # last validation message shown to the user, if any
    notice: Optional[str] = None

    @property
    def can_analyze(self) -> bool:
        return self.status in (Status.FILE_SELECTED, Status.ERROR)


@dataclass(frozen=True)
class SelectFile:
    file: SelectedFile
    max_size: int = MAX_FILE_SIZE
    accepted_types: Iterable[str] = ACCEPTED_FILE_TYPES


@dataclass(frozen=True)
class RemoveFile:
    pass


@dataclass(frozen=True)
class StartAnalysis:
    pass


@dataclass(frozen=True)
class AnalysisSucceeded:
    text: str


@dataclass(frozen=True)
class AnalysisFailed:
    message: str


@dataclass(frozen=True)
class PreviewReady:
    url: Optional[str]


Event = Union[SelectFile, RemoveFile, StartAnalysis, AnalysisSucceeded, AnalysisFailed, PreviewReady]


def transition(state: UIState, event: Event) -> UIState:
    if state.status == Status.LOADING:
        # single flight: only the outcome of the running call moves us on
        if isinstance(event, AnalysisSucceeded):
            if not event.text:
                return replace(state, status=Status.ERROR, error="Analysis returned no result.")
            return replace(state, status=Status.SUCCESS, analysis=event.text, error=None)
        if isinstance(event, AnalysisFailed):
            return replace(state, status=Status.ERROR, error=event.message, analysis=None)
        return state

    if isinstance(event, SelectFile):
        f = event.file
        message = validate_file(f.name, f.mime_type, f.size, event.max_size, event.accepted_types)
        if message:
            return replace(state, notice=message)
        return UIState(status=Status.FILE_SELECTED, file=f)

    if isinstance(event, PreviewReady):
        if state.file is None:
            return state
        return replace(state, preview_url=event.url)

    if isinstance(event, RemoveFile):
        return UIState()

    if isinstance(event, StartAnalysis):
        if not state.can_analyze or state.file is None:
            return state
        return replace(state, status=Status.LOADING, analysis=None, error=None, notice=None)

    return state
