from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from app.core.settings import Settings, get_settings
from app.flows.analyze_file import AnalyzeFileFlow, get_analyze_flow
from app.schemas.analysis import AnalysisRequest, AnalysisResult
from app.services.actions import analyze_file_action
from app.services.file_encoder import FALLBACK_MIME_TYPE, encode_data_uri, guess_mime_type, validate_file

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analyze", tags=["analyze"])


@router.post("", response_model=AnalysisResult, response_model_exclude_none=True)
def analyze(payload: AnalysisRequest, flow: AnalyzeFileFlow = Depends(get_analyze_flow)):
    return analyze_file_action(payload.file_data_uri, flow=flow)


@router.post("/file", response_model=AnalysisResult, response_model_exclude_none=True)
def analyze_upload(
    file: UploadFile = File(...),
    flow: AnalyzeFileFlow = Depends(get_analyze_flow),
    settings: Settings = Depends(get_settings),
):
    name = file.filename or "upload"
    mime_type = file.content_type or ""
    if mime_type in ("", FALLBACK_MIME_TYPE):
        # multipart clients send octet-stream when they don't know the type
        mime_type = guess_mime_type(name)

    # Read one byte past the limit so oversized uploads are rejected without buffering them whole.
    raw = file.file.read(settings.max_file_size + 1)
    message = validate_file(name, mime_type, len(raw), settings.max_file_size, settings.accepted_types)
    if message:
        logger.info(f"Rejected upload {name!r} ({mime_type or 'no type'}): {message}")
        raise HTTPException(status_code=400, detail=message)

    return analyze_file_action(encode_data_uri(raw, mime_type), flow=flow)
