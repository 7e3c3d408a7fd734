"""
Environment configuration for the Match Patrol API
"""
import os
from typing import List

from dotenv import load_dotenv

from match_patrol.utils.exceptions import ConfigurationError

load_dotenv()

REPAIR_POLICY_CLAIM = "claim"
REPAIR_POLICY_OVERWRITE = "overwrite"
REPAIR_POLICIES = (REPAIR_POLICY_CLAIM, REPAIR_POLICY_OVERWRITE)

DEFAULT_CORS_ORIGINS = [
    "https://match-patrol-frontend.vercel.app",
    "https://match-patrol-frontend-git-main-aloksingh1008.vercel.app",
    "https://match-patrol-frontend-aloksingh1008.vercel.app",
    "http://localhost:5173",
    "http://localhost:3000",
]


def _env_number(key: str, default: str, cast=float):
    raw = os.getenv(key, default)
    try:
        return cast(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{key} must be numeric", config_key=key, config_value=raw, cause=e)


def _env_list(key: str, default: List[str]) -> List[str]:
    raw = os.getenv(key)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


EXTERNAL_API_BASE = os.getenv("EXTERNAL_API_BASE", "http://ai1.strategicerpcloud.com:11111").rstrip("/")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _env_number("PORT", "3001", cast=int)

MONGO_DETAILS = os.getenv("MONGO_DETAILS", "mongodb://localhost:27017/?replicaSet=rs0")
DB_NAME = os.getenv("DB_NAME", "match_patrol")

# Seconds
READ_TIMEOUT = _env_number("READ_TIMEOUT", "5")
WRITE_TIMEOUT = _env_number("WRITE_TIMEOUT", "10")

MAX_ALLOCATION_ATTEMPTS = _env_number("MAX_ALLOCATION_ATTEMPTS", "10", cast=int)

USERNAME_REPAIR_POLICY = os.getenv("USERNAME_REPAIR_POLICY", REPAIR_POLICY_CLAIM).lower()
if USERNAME_REPAIR_POLICY not in REPAIR_POLICIES:
    raise ConfigurationError(
        f"USERNAME_REPAIR_POLICY must be one of {', '.join(REPAIR_POLICIES)}",
        config_key="USERNAME_REPAIR_POLICY",
        config_value=USERNAME_REPAIR_POLICY,
    )

CORS_ORIGINS = _env_list("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
