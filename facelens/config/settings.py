"""
Application configuration settings
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _parse_paddings(raw: str):
    return tuple(float(p) for p in raw.split(",") if p.strip())


class Config:
    """Base configuration"""
    # Flask
    DEBUG = os.getenv("DEBUG", "false").lower() == "true"
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", 5000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # InsightFace model settings
    MODEL_NAME = os.getenv("INSIGHTFACE_MODEL", "buffalo_l")  # buffalo_l, buffalo_s, buffalo_sc
    DET_SIZE = int(os.getenv("DET_SIZE", 640))  # Detection size

    # Processing settings
    MAX_FACES = int(os.getenv("MAX_FACES", 50))  # Max faces to detect per image
    MIN_CONFIDENCE = float(os.getenv("MIN_CONFIDENCE", 0.5))  # Min detection confidence
    DETECTION_TARGET_WIDTH = int(os.getenv("DETECTION_TARGET_WIDTH", 800))  # Upscale small images to this width

    # Ensemble refinement
    ENSEMBLE_ENABLED = os.getenv("ENSEMBLE_ENABLED", "true").lower() == "true"
    ENSEMBLE_PADDINGS = _parse_paddings(os.getenv("ENSEMBLE_PADDINGS", "0.10,0.25,0.45"))

    # Image settings
    MAX_IMAGE_SIZE = int(os.getenv("MAX_IMAGE_SIZE", 10 * 1024 * 1024))  # 10MB
    ALLOWED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]

    # GPU settings
    USE_GPU = os.getenv("USE_GPU", "true").lower() == "true"
    GPU_ID = int(os.getenv("GPU_ID", 0))

    # Persistence; in-memory storage when unset
    DATABASE_URL = os.getenv("DATABASE_URL") or None
    HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", 10))


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Configuration used by the test suite"""
    DEBUG = False
    USE_GPU = False
    DATABASE_URL = None


def get_config():
    """Get configuration based on environment"""
    env = os.getenv("FLASK_ENV", "development")
    if env == "production":
        return ProductionConfig()
    if env == "testing":
        return TestingConfig()
    return DevelopmentConfig()
