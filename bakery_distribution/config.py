import os
from pathlib import Path

from .constants import DATA_DIR, DB_FILE_NAME, LOG_DIR, LOG_FILE_NAME

BASE_DIR = Path(__file__).resolve().parent
DATA_PATH = BASE_DIR / DATA_DIR
DB_PATH = Path(os.environ.get("BAKERY_DB_PATH") or (DATA_PATH / DB_FILE_NAME))

LOG_PATH = Path(os.environ.get("BAKERY_LOG_PATH") or (BASE_DIR / LOG_DIR / LOG_FILE_NAME))
LOG_LEVEL = os.environ.get("BAKERY_LOG_LEVEL", "INFO").upper()

# Reduce items.stock_quantity when stock is assigned to a salesperson.
DECREMENT_STOCK_ON_ASSIGNMENT = os.environ.get("BAKERY_DECREMENT_STOCK", "0").strip().lower() in {
    "1", "true", "yes", "on",
}
