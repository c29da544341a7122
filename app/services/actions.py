from __future__ import annotations

import logging
from typing import Optional

from app.flows.analyze_file import AnalyzeFileFlow, analyze_file
from app.schemas.analysis import AnalysisResult

logger = logging.getLogger(__name__)

MISSING_DATA_MESSAGE = "File data is missing."
NO_RESULT_MESSAGE = "Analysis returned no result."
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."


def analyze_file_action(file_data_uri: Optional[str], flow: Optional[AnalyzeFileFlow] = None) -> AnalysisResult:
    """
    Boundary call used by the page and the HTTP API.

    Never raises: every failure below this point comes back as
    ``AnalysisResult(success=False, error=...)``.
    """
    if not file_data_uri:
        return AnalysisResult.fail(MISSING_DATA_MESSAGE)

    try:
        result = analyze_file({"file_data_uri": file_data_uri}, flow=flow)
    except Exception as e:
        logger.error(f"AI analysis error: {type(e).__name__}: {e}", exc_info=True)
        message = str(e) or UNKNOWN_ERROR_MESSAGE
        return AnalysisResult.fail(f"An error occurred during analysis: {message}")

    if result.analysis:
        return AnalysisResult.ok(result.analysis)
    return AnalysisResult.fail(NO_RESULT_MESSAGE)
