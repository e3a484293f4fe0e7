import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Centralized configuration, read from the environment"""

    # ==================== Database ====================
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mockprep.db")

    # ==================== LLM ====================
    HF_TOKEN = os.getenv("HF_TOKEN")
    HF_REPO_ID = os.getenv("HF_REPO_ID", "mistralai/Mistral-7B-Instruct-v0.2")
    HF_MAX_NEW_TOKENS = int(os.getenv("HF_MAX_NEW_TOKENS", "2048"))
    LLM_TIMEOUT = int(os.getenv("LLM_TIMEOUT", "60"))
    AI_RETRY_ATTEMPTS = int(os.getenv("AI_RETRY_ATTEMPTS", "3"))

    # ==================== Exams ====================
    DEFAULT_EXAM_DURATION_MIN = int(os.getenv("DEFAULT_EXAM_DURATION_MIN", "60"))
    EXAM_GENERATION_TIMEOUT = float(os.getenv("EXAM_GENERATION_TIMEOUT", "120"))
    FALLBACK_FEEDBACK = os.getenv("FALLBACK_FEEDBACK", "Keep practicing!")

    # ==================== Source material ====================
    SOURCE_MATERIAL_TTL_SECONDS = int(os.getenv("SOURCE_MATERIAL_TTL_SECONDS", "3600"))
    SOURCE_ARTICLE_LIMIT = int(os.getenv("SOURCE_ARTICLE_LIMIT", "10"))

    # ==================== Logging ====================
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
