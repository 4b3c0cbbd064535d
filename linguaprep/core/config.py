# linguaprep/core/config.py
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes")


class Config:
    """Centralized configuration management"""

    # ==================== API Configuration ====================
    API_TITLE = "LinguaPrep Assessment API"
    API_VERSION = "1.0.0"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # ==================== Database Configuration ====================
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./linguaprep.db")
    DATABASE_ECHO = _env_bool("DATABASE_ECHO", "false")

    # ==================== Cache Configuration ====================
    # Empty REDIS_URL falls back to the in-process store
    REDIS_URL = os.getenv("REDIS_URL", "").strip()
    REDIS_SOCKET_TIMEOUT = float(os.getenv("REDIS_SOCKET_TIMEOUT", "0.5"))
    CACHE_TTL_SECONDS = int(os.getenv("CACHE_TTL_SECONDS", "300"))
    CACHE_KEY_PREFIX = os.getenv("CACHE_KEY_PREFIX", "linguaprep")

    # ==================== Practice Configuration ====================
    PRACTICE_DEFAULT_LIMIT = int(os.getenv("PRACTICE_DEFAULT_LIMIT", "20"))
    PRACTICE_MAX_LIMIT = int(os.getenv("PRACTICE_MAX_LIMIT", "100"))

    # ==================== Evaluation Configuration ====================
    # Fraction of a subjective question's points needed to count it correct
    SUBJECTIVE_PASS_RATIO = float(os.getenv("SUBJECTIVE_PASS_RATIO", "0.6"))
    SUBJECTIVE_EVALUATOR = os.getenv("SUBJECTIVE_EVALUATOR", "mock").strip().lower()
    HF_TOKEN = os.getenv("HF_TOKEN")
    HF_REPO_ID = os.getenv("HF_REPO_ID", "mistralai/Mistral-7B-Instruct-v0.2")
    HF_TIMEOUT = int(os.getenv("HF_TIMEOUT", "30"))


config = Config()
