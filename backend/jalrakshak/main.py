# backend/jalrakshak/main.py
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import config, __version__
from .broadcast import hub
from .database import engine, Base, SessionLocal
from .errors import JalRakshakError
from .routes import router
from .schemas import error_envelope
from .seed import seed_sensors
from .store import Store

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# -----------------------------
# App lifecycle
# -----------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)

    if config.SEED_SENSORS:
        with SessionLocal() as db:
            seed_sensors(Store(db))

    hub.init(asyncio.get_running_loop())
    logger.info("%s %s started", config.SERVICE_NAME, __version__)
    try:
        yield
    finally:
        hub.init(None)
        logger.info("Shutting down %s", config.SERVICE_NAME)


app = FastAPI(title=config.SERVICE_NAME, version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------------
# Error envelope
# -----------------------------
@app.exception_handler(JalRakshakError)
async def handle_domain_error(request: Request, exc: JalRakshakError):
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc.message, exc.error))


@app.exception_handler(RequestValidationError)
async def handle_request_error(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=error_envelope("Invalid request", str(exc.errors())))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=error_envelope("Internal server error", str(exc)))


# -----------------------------
# Real-time channel
# -----------------------------
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await websocket.accept()
    hub.join(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            # binary frames are ignored
            if message.get("text") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        hub.leave(websocket)


# Main API
app.include_router(router)
