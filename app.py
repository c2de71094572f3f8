from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from routers.rooms import rooms_router
from registry import room_registry
from signaling import SignalRouter
from session import SignalingSession
from connection import WebSocketConnection
from constants import HEALTH_CHECK_TEXT, LOG_LEVEL, LOG_FILE
from logging_config import get_logger, setup_logging

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

app = FastAPI()

# Configure CORS to allow all origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins
    allow_credentials=True,
    allow_methods=["*"],  # Allow all HTTP methods
    allow_headers=["*"],  # Allow all headers
)

app.include_router(rooms_router)

signal_router = SignalRouter(room_registry)

logger.info("FastAPI application initialized")


@app.get("/", response_class=PlainTextResponse)
async def health_check():
    """Liveness confirmation for plain (non-upgraded) requests."""
    return HEALTH_CHECK_TEXT


@app.websocket("/")
@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Signaling WebSocket endpoint.

    Every frame is one JSON object; rooms are joined with a "join" message,
    not through the URL.
    """
    await websocket.accept()
    connection = WebSocketConnection(websocket)
    session = SignalingSession(connection, signal_router)
    client_host = websocket.client.host if websocket.client else 'unknown'
    logger.info(f"New client connected: {connection.connection_id} from {client_host}")

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"WebSocket disconnected normally for connection {connection.connection_id}")
                break

            frame = message.get("text")
            if frame is None:
                frame = message.get("bytes")
            if frame is None:
                continue

            await session.handle_frame(frame)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for connection {connection.connection_id}")
    except Exception as e:
        logger.error(f"Error receiving message from connection {connection.connection_id}: {e}", exc_info=True)
    finally:
        # Cleanup on disconnect
        await session.close()
