from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates

from app.api_routes import router as api_router
from app.core.settings import get_settings
from app.services.file_encoder import ACCEPTED_FILE_EXTENSIONS, format_size_limit

BASE_DIR = Path(__file__).resolve().parents[1]

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Mimesis (Gemini)")

app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")
templates = Jinja2Templates(directory=BASE_DIR / "templates")

app.include_router(api_router)


@app.get("/", response_class=HTMLResponse)
def home(request: Request):
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "accept": ACCEPTED_FILE_EXTENSIONS,
            "max_file_size": settings.max_file_size,
            "size_limit": format_size_limit(settings.max_file_size),
            "accepted_types": settings.accepted_types,
        },
    )
