# kasir/config.py
import os

DB_PATH = os.environ.get("KASIR_DB_PATH", "kasir.db")
DB_TIMEOUT = float(os.environ.get("KASIR_DB_TIMEOUT", "5.0"))
LOG_LEVEL = os.environ.get("KASIR_LOG_LEVEL", "INFO").upper()
API_URL = os.environ.get("KASIR_API_URL", "http://127.0.0.1:8085")
CURRENCY_SYMBOL = os.environ.get("KASIR_CURRENCY_SYMBOL", "Rp")
