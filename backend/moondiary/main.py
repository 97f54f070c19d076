"""
Moon Diary Backend, FastAPI entry point.

Endpoints:
- /api/auth      : sign-up, login, session refresh, password flows
- /api/user      : profile (nickname)
- /api/account   : re-authentication and account deletion
- /api/moods     : the four moon-phase moods
- /api/diaries   : feed, calendar, entry CRUD
- /api/media     : photo/video attachments
- /api/stats     : period statistics and analysis
- GET /health    : health check
"""
from __future__ import annotations

import importlib
import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request  # noqa: E402
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
from fastapi.responses import JSONResponse  # noqa: E402

from moondiary.api.errors import to_http_exception  # noqa: E402
from moondiary.config import CORS_ORIGINS, LOG_LEVEL  # noqa: E402
from moondiary.core.errors import MoonDiaryError  # noqa: E402

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


app = FastAPI(title="Moon Diary API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(MoonDiaryError)
async def moon_diary_error_handler(request: Request, exc: MoonDiaryError):
    http_exc = to_http_exception(exc)
    logger.error(f"[API] ❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"detail": http_exc.detail}, status_code=http_exc.status_code)


# ── REST API routers ─────────────────────────────────────────────

for module_path, attribute, prefix, tag in [
    ("moondiary.api.auth", "router", "/api/auth", "auth"),
    ("moondiary.api.user", "router", "/api/user", "user"),
    ("moondiary.api.account", "router", "/api/account", "account"),
    ("moondiary.api.diary", "moods_router", "/api/moods", "moods"),
    ("moondiary.api.diary", "router", "/api/diaries", "diaries"),
    ("moondiary.api.media", "router", "/api/media", "media"),
    ("moondiary.api.stats", "router", "/api/stats", "stats"),
]:
    mod = importlib.import_module(module_path)
    app.include_router(getattr(mod, attribute), prefix=prefix, tags=[tag])
    logger.info("✅ %s router mounted at %s", tag, prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "moon-diary-backend"}
