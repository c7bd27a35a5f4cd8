"""
Tracker configuration.

Settings come from the environment (a local .env file is honoured).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# -------------------------------
# Paths
# -------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent
DATA_FILE = Path(os.getenv("TRACKER_DATA_FILE", str(PROJECT_ROOT / "users.json")))

# -------------------------------
# Server
# -------------------------------
HOST = os.getenv("TRACKER_HOST", "127.0.0.1")
PORT = int(os.getenv("TRACKER_PORT", "5000"))

# -------------------------------
# Logging
# -------------------------------
LOG_LEVEL = os.getenv("TRACKER_LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("TRACKER_LOG_FILE") or None  # unset = console only

APP_TITLE = "Quran Family Tracker"
