import os

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 9292))
RELOAD = os.getenv("RELOAD", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", None)

SIGNALING_PATH = os.getenv("SIGNALING_PATH", "/ws")
DEFAULT_ROOM = os.getenv("DEFAULT_ROOM", "demo")
ROOM_CAPACITY = int(os.getenv("ROOM_CAPACITY", 2))
MAX_ROOM_KEY_LENGTH = int(os.getenv("MAX_ROOM_KEY_LENGTH", 64))

ROOM_FULL_CLOSE_CODE = 1000  # normal closure
ROOM_FULL_REASON = "room full"

PUBLIC_DIR = os.getenv("PUBLIC_DIR", None)
CORS_ALLOW_ORIGINS = [o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()]
