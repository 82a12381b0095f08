"""FastAPI app exposing capture intents to local automation callers."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel, Field

from .bridge import ScreenshotBridge
from .errors import (
    CaptureBridgeError,
    CaptureFailedError,
    CaptureTimeoutError,
    CoordinatorUnavailableError,
    NoFileError,
    NoResultError,
)
from .intents import INTENTS, describe_error, get_intent, parse_return_kind
from .logging_utils import get_logger

_LOG = get_logger("api")


class IntentRequest(BaseModel):
    return_type: Optional[str] = Field(
        None, description="filePath or text; unknown values use the intent default."
    )


class IntentResponse(BaseModel):
    intent: str
    return_type: str
    value: str


class BridgeHealth(BaseModel):
    status: str = Field("ok")
    coordinator: bool
    pending: int


def status_for_error(exc: CaptureBridgeError) -> int:
    if isinstance(exc, CoordinatorUnavailableError):
        return 503
    if isinstance(exc, CaptureTimeoutError):
        return 504
    if isinstance(exc, CaptureFailedError):
        return 502
    if isinstance(exc, (NoResultError, NoFileError)):
        return 404
    return 500


def create_app(bridge: ScreenshotBridge) -> FastAPI:
    app = FastAPI(title="CaptureBridge")

    @app.get("/health", response_model=BridgeHealth)
    def health() -> BridgeHealth:
        correlator = bridge.correlator
        return BridgeHealth(
            status="ok",
            coordinator=correlator.coordinator.available,
            pending=correlator.pending_count(),
        )

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/intents")
    def intents() -> list[dict[str, Any]]:
        return [intent.as_dict() for intent in INTENTS]

    @app.post("/intents/{name}", response_model=IntentResponse)
    async def run(name: str, payload: IntentRequest | None = None) -> IntentResponse:
        try:
            intent = get_intent(name)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"unknown intent: {name}") from exc
        want = parse_return_kind(payload.return_type if payload else None, intent.default_return)
        try:
            value = await bridge.capture(intent.kind, want)
        except CaptureBridgeError as exc:
            status = status_for_error(exc)
            _LOG.info("Intent {} -> {} ({})", name, status, exc)
            raise HTTPException(status_code=status, detail=describe_error(exc)) from exc
        return IntentResponse(intent=name, return_type=want.value, value=value)

    return app
