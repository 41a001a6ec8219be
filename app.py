import mimetypes
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from backend import RoomRegistry
from constants import CORS_ALLOW_ORIGINS, LOG_FILE, LOG_LEVEL, PUBLIC_DIR
from logging_config import get_logger, setup_logging
from middleware import LowercaseHeadersMiddleware
from routers.rooms import rooms_router
from routers.signaling import signaling_router

# Setup logging
setup_logging(log_level=LOG_LEVEL, log_file=LOG_FILE)
logger = get_logger(__name__)

# ruby.wasm bundles must be served with the wasm content type
mimetypes.add_type("application/wasm", ".wasm")


def create_app(registry: Optional[RoomRegistry] = None, public_dir: Optional[str] = PUBLIC_DIR) -> FastAPI:
    app = FastAPI(title="Signaling relay")
    app.state.registry = registry if registry is not None else RoomRegistry()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LowercaseHeadersMiddleware)

    app.include_router(signaling_router)
    app.include_router(rooms_router)

    # Mounted last so it only sees paths no router matched
    if public_dir and os.path.isdir(public_dir):
        app.mount("/", StaticFiles(directory=public_dir, html=True), name="public")
        logger.info(f"Serving static assets from {public_dir}")
    elif public_dir:
        logger.warning(f"PUBLIC_DIR {public_dir} does not exist, static assets disabled")

    logger.info("FastAPI application initialized")
    return app


app = create_app()
