import os

from dotenv import load_dotenv

# Load .env file with explicit UTF-8 encoding
load_dotenv(encoding="utf-8")


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./reward_points.db"

LOG_LEVEL = (os.getenv("LOG_LEVEL") or "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in (os.getenv("CORS_ORIGINS") or "http://localhost:4200,http://127.0.0.1:4200").split(",")
    if origin.strip()
]

# ─── Concurrency ──────────────────────────────────────────────────
# Upper bound for acquiring a per-resource lock before giving up with a conflict.
LOCK_TIMEOUT_SECONDS = float(os.getenv("LOCK_TIMEOUT_SECONDS") or "2")
CONFLICT_RETRIES = int(os.getenv("CONFLICT_RETRIES") or "3")

# ─── Admin budgets ────────────────────────────────────────────────
# Used when a budget period is created lazily on the first award of a month.
DEFAULT_MONTHLY_BUDGET = int(os.getenv("DEFAULT_MONTHLY_BUDGET") or "10000")
DEFAULT_BUDGET_HARD_LIMIT = _as_bool(os.getenv("DEFAULT_BUDGET_HARD_LIMIT"), default=False)
DEFAULT_BUDGET_WARNING_PCT = int(os.getenv("DEFAULT_BUDGET_WARNING_PCT") or "80")

# ─── Alerts ───────────────────────────────────────────────────────
LOW_POOL_THRESHOLD_PCT = int(os.getenv("LOW_POOL_THRESHOLD_PCT") or "20")
