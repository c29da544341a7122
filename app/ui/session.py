from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from app.core.errors import FileReadError
from app.core.settings import Settings
from app.schemas.analysis import AnalysisResult
from app.services.actions import analyze_file_action
from app.services.file_encoder import SelectedFile, read_file_as_data_uri
from app.ui.state import (
    AnalysisFailed,
    AnalysisSucceeded,
    Event,
    PreviewReady,
    RemoveFile,
    SelectFile,
    StartAnalysis,
    Status,
    UIState,
    transition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    variant: str = "destructive"


class PreviewRegistry:
    """Hands out ``blob:`` preview URLs for image files and tracks their release."""

    def __init__(self):
        self._live: Dict[str, SelectedFile] = {}
        self.created = 0
        self.revoked = 0

    def create(self, file: SelectedFile) -> str:
        url = f"blob:mimesis/{uuid.uuid4()}"
        self._live[url] = file
        self.created += 1
        return url

    def revoke(self, url: str) -> None:
        if self._live.pop(url, None) is None:
            raise KeyError(f"preview already revoked or unknown: {url}")
        self.revoked += 1

    @property
    def live(self) -> List[str]:
        return list(self._live)


class AnalysisSession:
    """One upload page session: owns its state, previews and notifications."""

    def __init__(
        self,
        action: Callable[[str], AnalysisResult] = analyze_file_action,
        settings: Optional[Settings] = None,
        previews: Optional[PreviewRegistry] = None,
    ):
        self.action = action
        self.settings = settings
        self.previews = previews or PreviewRegistry()
        self.state = UIState()
        self.notifications: List[Notification] = []

    @property
    def status(self) -> Status:
        return self.state.status

    def dispatch(self, event: Event) -> UIState:
        prev = self.state
        self.state = transition(prev, event)
        self._sync_preview(prev)
        return self.state

    def select_file(self, file: SelectedFile) -> UIState:
        if self.settings is not None:
            event = SelectFile(file, self.settings.max_file_size, tuple(self.settings.accepted_types))
        else:
            event = SelectFile(file)
        prev = self.state
        state = self.dispatch(event)
        if state.file is not file and state.notice and state is not prev:
            logger.info(f"Rejected file {file.name!r}: {state.notice}")
            self.notify("Error", state.notice)
        return self.state

    def remove_file(self) -> UIState:
        return self.dispatch(RemoveFile())

    def reset(self) -> UIState:
        return self.remove_file()

    async def analyze(self) -> UIState:
        if not self.state.can_analyze:
            return self.state
        file = self.state.file
        self.dispatch(StartAnalysis())

        try:
            data_uri = await asyncio.to_thread(read_file_as_data_uri, file)
        except Exception as e:
            logger.error(f"Could not read {file.name!r}: {e}", exc_info=True)
            message = str(e) if isinstance(e, FileReadError) else str(FileReadError())
            self.notify("Error", message)
            return self.dispatch(AnalysisFailed(message))

        try:
            result = await asyncio.to_thread(self.action, data_uri)
        except Exception as e:
            # the action should never raise; don't leave the page spinning if it does
            logger.error(f"Analysis action raised: {e}", exc_info=True)
            result = AnalysisResult.fail(f"An error occurred during analysis: {str(e) or 'An unknown error occurred.'}")

        if result.success:
            return self.dispatch(AnalysisSucceeded(result.data))
        self.notify("Analysis Failed", result.error)
        return self.dispatch(AnalysisFailed(result.error))

    def notify(self, title: str, description: str, variant: str = "destructive") -> None:
        self.notifications.append(Notification(title, description, variant))

    def _sync_preview(self, prev: UIState) -> None:
        if prev.preview_url and prev.preview_url != self.state.preview_url:
            self.previews.revoke(prev.preview_url)
        new_file = self.state.file
        if new_file is not None and new_file.is_image and self.state.preview_url is None:
            self.state = transition(self.state, PreviewReady(self.previews.create(new_file)))
