from __future__ import annotations

import hmac
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router

logger = logging.getLogger(__name__)

app = FastAPI(title="Sales Quarter game server")


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def _game_token_guard(request: Request, call_next):
    """Gate every game move and block registration behind SALES_ADMIN_TOKEN.

    Unset token: open table (local play). Reads are never gated.
    """
    token = (os.environ.get("SALES_ADMIN_TOKEN") or "").strip()
    is_move = (request.method or "").upper() == "POST" and (request.url.path or "").startswith("/api/")
    if not token or not is_move:
        return await call_next(request)

    if not hmac.compare_digest((request.headers.get("X-Admin-Token") or "").strip().encode(), token.encode()):
        logger.warning("SALES_TOKEN_REJECTED path=%s", request.url.path)
        return JSONResponse(status_code=401, content={"detail": "Unauthorized: invalid X-Admin-Token"})

    return await call_next(request)


app.include_router(api_router)
