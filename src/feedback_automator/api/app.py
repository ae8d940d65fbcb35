"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from feedback_automator.api.models import AutomateRequest
from feedback_automator.app_logging import configure_logging
from feedback_automator.containers import AppContainer
from feedback_automator.domain.events import encode_event
from feedback_automator.services.events import EventChannel
from feedback_automator.services.pipeline import RunRequest
from feedback_automator.services.ratings import build_policy

_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)
    running: set[asyncio.Task[None]] = set()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if running:
            await asyncio.gather(*running, return_exceptions=True)
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/automate", response_model=None)
    async def automate(request: Request) -> JSONResponse | StreamingResponse:
        """Run the feedback automation and stream NDJSON progress events."""
        state_container: AppContainer = request.app.state.container
        try:
            body = await request.json()
        except ValueError:
            return _bad_request("Invalid JSON")
        if not isinstance(body, dict):
            return _bad_request("Invalid JSON")
        if not body.get("username") or not body.get("password"):
            return _bad_request("Username and password are required.")
        try:
            payload = AutomateRequest.model_validate(body)
            policy = build_policy(
                payload.feedback_mode, payload.rating, payload.faculty_ratings
            )
        except (ValidationError, ValueError) as exc:
            return _bad_request(_validation_message(exc))

        run_request = RunRequest(
            username=payload.username,
            password=payload.password,
            policy=policy,
        )

        async def stream() -> AsyncIterator[str]:
            channel = EventChannel()
            task = asyncio.create_task(
                state_container.pipeline.run(run_request, channel)
            )
            running.add(task)
            task.add_done_callback(running.discard)
            try:
                async for event in channel:
                    yield encode_event(event)
            finally:
                channel.close()
                if not task.done():
                    logger.info("Client disconnected; run continues without output")

        return StreamingResponse(
            stream(),
            media_type="application/x-ndjson",
            headers=_STREAM_HEADERS,
        )

    return app


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=400)


def _validation_message(exc: Exception) -> str:
    """Return a short client-facing message for a rejected request body."""
    if isinstance(exc, ValidationError):
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        return f"Invalid {location}: {first.get('msg', 'invalid value')}"
    return str(exc)
