import os

# Base directory
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Paths
STATIC_DIR = os.path.join(BASE_DIR, "static")
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# Local server (PORT=0 picks a free port at launch)
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "0"))

# Remote quiz backend
BACKEND_URL = os.getenv("QUIZ_BACKEND_URL", "http://localhost:8080")
HTTP_TIMEOUT = float(os.getenv("QUIZ_HTTP_TIMEOUT", "60.0"))  # generation can be slow

# Browser sessions
SESSION_COOKIE = "quiz_session"
SESSION_TTL = int(os.getenv("QUIZ_SESSION_TTL", "3600"))  # 1 hour
CLEANUP_INTERVAL = 300
