from __future__ import annotations  # FastAPI server exposing the interview engine

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import router
from api.schemas import ErrorResponse
from config.settings import settings
from llm_gateway import build_provider
from services.errors import InterviewError
from storage.migrate import migrate


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # Prepare schema and AI provider once per process
    migrate(settings.DB_PATH)
    if getattr(app.state, "ai_provider", None) is None:
        app.state.ai_provider = build_provider(settings)
    yield


def _error(status_code: int, message: str, details: object = None) -> JSONResponse:
    body = ErrorResponse(message=message, details=details)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Interview error on %s %s: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("Interview error (%d) on %s: %s", exc.status_code, request.url.path, exc.message)
    return _error(exc.status_code, exc.message, exc.details)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(400, "Invalid request payload.", jsonable_encoder(exc.errors()))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return _error(404, f"Route {request.url.path} not found.")
    return _error(exc.status_code, str(exc.detail))


def create_app() -> FastAPI:
    app = FastAPI(title="Interview Engine API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InterviewError, interview_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.include_router(router)
    return app


app = create_app()
