import os
from pathlib import Path

from .constants import DATA_DIR, DB_FILE_NAME

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = Path(os.environ.get("BILLDESK_DATA_DIR") or (BASE_DIR.parent / DATA_DIR))
DB_PATH = DATA_PATH / DB_FILE_NAME


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Stock may go below zero unless this is switched off.
ALLOW_NEGATIVE_STOCK = _env_flag("BILLDESK_ALLOW_NEGATIVE_STOCK", True)
