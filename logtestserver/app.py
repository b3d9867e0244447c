"""
Container Notes:
- Listens on ${HOST}:${PORT} (default 0.0.0.0:4000).
- No files are written to disk; all logs go to stdout as structured JSON lines.
- POST / schedules synthetic log emission, e.g.
  curl -X POST -H 'Content-Type: application/json' -d '{"duration": "30s", "rate": 5}' http://localhost:4000/
- Emission tasks are detached threads. Any still running at shutdown are dropped.

Run: python -m logtestserver.app
Example: curl -i http://localhost:4000/slow
"""

import asyncio
import random
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, StrictInt, ValidationError
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from logtestserver import config
from logtestserver.emitter import Dispatcher, EmissionRequest
from logtestserver.errors import InvalidDuration, InvalidRequest
from logtestserver.response import DUMMY_RESPONSE
from logtestserver.structured_log import StructuredLogger, uvicorn_level


# --- Models ---
class SyntheticLoggingRequest(BaseModel):
    duration: str = ""
    rate: StrictInt = 0


# --- Logging ---
class LoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger: StructuredLogger):
        super().__init__(app)
        self.logger = logger

    async def dispatch(self, request: Request, call_next):
        start = time.time()
        req_id = request.headers.get("X-Req-Id") or str(uuid.uuid4())
        response = await call_next(request)
        latency_ms = int((time.time() - start) * 1000)
        log = self.logger.error if response.status_code >= 500 else self.logger.info
        log(
            "request",
            method=request.method,
            host=request.headers.get("host", ""),
            path=request.url.path,
            remote_addr=get_client_addr(request),
            proto=f"HTTP/{request.scope.get('http_version', '1.1')}",
            status=response.status_code,
            latency_ms=latency_ms,
            user_agent=request.headers.get("user-agent", ""),
            req_id=req_id,
        )
        return response


# --- Utility Functions ---
def get_client_addr(request: Request) -> str:
    if not request.client:
        return ""
    return f"{request.client.host}:{request.client.port}"


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def get_logger(request: Request) -> StructuredLogger:
    return request.app.state.logger


def canned_response() -> JSONResponse:
    return JSONResponse(DUMMY_RESPONSE)


# --- Lifespan ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.dispatcher.start()
    yield
    app.state.logger.info(
        "shutting down",
        pending=app.state.dispatcher.pending,
        tasks_started=app.state.dispatcher.started,
    )


# --- App ---
def create_app(dispatcher: Optional[Dispatcher] = None, logger: Optional[StructuredLogger] = None) -> FastAPI:
    """Build the application around one explicitly owned Dispatcher."""
    if logger is None:
        logger = dispatcher.logger if dispatcher is not None else StructuredLogger(config.LOG_LEVEL)
    if dispatcher is None:
        dispatcher = Dispatcher(
            logger,
            queue_size=config.QUEUE_SIZE,
            min_cadence=config.MIN_CADENCE_MS / 1000,
        )

    app = FastAPI(title="Log Test Server", docs_url=None, redoc_url=None, lifespan=lifespan)
    app.state.dispatcher = dispatcher
    app.state.logger = logger
    app.add_middleware(LoggingMiddleware, logger=logger)
    app.add_middleware(GZipMiddleware, minimum_size=1024)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    # --- Canned responses ---
    @app.get("/")
    async def root():
        """Return the canned payload."""
        return canned_response()

    @app.get("/slow")
    async def slow():
        """Return the canned payload after a random delay."""
        await asyncio.sleep(random.randint(config.SLOW_MIN_MS, config.SLOW_MAX_MS) / 1000)
        return canned_response()

    @app.get("/timeout")
    async def timeout():
        """Sleep, then answer 408."""
        await asyncio.sleep(config.TIMEOUT_MS / 1000)
        return Response(status_code=408)

    @app.get("/500")
    async def server_error():
        return Response(status_code=500)

    # --- Health & Config ---
    @app.get("/healthz")
    async def healthz():
        """Health check."""
        return {"status": "ok"}

    @app.get("/config")
    async def get_config():
        """Return whitelisted env vars."""
        return config.get_env_vars()

    # --- Synthetic logging ---
    @app.post("/")
    async def schedule_logging(request: Request):
        """Queue a synthetic logging task for the given duration and rate."""
        log = get_logger(request)
        ct = request.headers.get("content-type", "")
        if "application/json" not in ct:
            return Response(status_code=400)

        body = await request.body()
        try:
            payload = SyntheticLoggingRequest.model_validate_json(body)
        except ValidationError as exc:
            log.error("failed to unmarshal", error=str(exc))
            return PlainTextResponse("Invalid json", status_code=400)

        try:
            emission = EmissionRequest.parse(payload.duration, payload.rate)
        except InvalidDuration as exc:
            log.error("failed to parse duration", error=str(exc))
            return PlainTextResponse("invalid duration format", status_code=400)
        except InvalidRequest as exc:
            log.error("invalid emission request", error=str(exc))
            return PlainTextResponse("invalid rate", status_code=400)

        target = get_dispatcher(request)
        await run_in_threadpool(target.submit, emission)
        return JSONResponse(
            {
                "duration": payload.duration,
                "rate": emission.rate,
                "cadence_ms": round(target.cadence_for(emission) * 1000, 3),
            },
            status_code=202,
        )

    return app


app = create_app()


# --- Main ---
def main():
    import uvicorn

    app.state.logger.info(f"Listening on {config.HOST}:{config.PORT}...")
    uvicorn.run(app, host=config.HOST, port=config.PORT, log_level=uvicorn_level(config.LOG_LEVEL), access_log=False)


if __name__ == "__main__":
    main()
