# aso_emulator/config.py
#
# ASO Observatory – Runtime configuration
#
# Every knob is read once from the environment at import time, with a
# default that matches the live observatory. The narrative API key is the
# exception: it is looked up at call time by the narrative client so that
# a key exported after startup is still picked up.

import logging
import os
import sys
from pathlib import Path

# -------------------------------------------------
# Scheduling
# -------------------------------------------------

STATE_PERIOD_SECONDS = float(os.getenv("STATE_PERIOD_SECONDS", "1.0"))
LOG_PERIOD_SECONDS = float(os.getenv("LOG_PERIOD_SECONDS", "3.0"))

# -------------------------------------------------
# Buffers and thresholds
# -------------------------------------------------

# last 100 samples plus the one just appended
HISTORY_CAPACITY = int(os.getenv("HISTORY_CAPACITY", "101"))
ALERT_CAPACITY = int(os.getenv("ALERT_CAPACITY", "5"))
LOG_CAPACITY = int(os.getenv("LOG_CAPACITY", "20"))

ALERT_THRESHOLD = float(os.getenv("ALERT_THRESHOLD", "0.75"))
ALERT_SUPPRESSION_MS = int(os.getenv("ALERT_SUPPRESSION_MS", "5000"))

# Display-only thresholds
HANDOVER_THRESHOLD = 0.65
ELEVATED_THRESHOLD = 0.40
HEARTBEAT_FRESH_MS = 2000

# -------------------------------------------------
# Seed state
# -------------------------------------------------

INITIAL_STATE_PATH = os.getenv(
    "INITIAL_STATE_PATH",
    str(Path(__file__).parent / "seed_state.json"),
)

# -------------------------------------------------
# Narrative generation
# -------------------------------------------------

NARRATIVE_API_URL = os.getenv(
    "NARRATIVE_API_URL", "https://generativelanguage.googleapis.com/v1beta"
)
NARRATIVE_MODEL = os.getenv("NARRATIVE_MODEL", "gemini-3-flash-preview")
NARRATIVE_TIMEOUT_SECONDS = float(os.getenv("NARRATIVE_TIMEOUT_SECONDS", "30"))
API_KEY_ENV = os.getenv("API_KEY_ENV", "API_KEY")

# -------------------------------------------------
# Logging
# -------------------------------------------------

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure the root logger for the API service and the headless runner."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
