
import os
from dotenv import load_dotenv

load_dotenv()


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///local.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    APP_ENV = os.getenv("APP_ENV", "development")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    CORS_ORIGINS = _csv(os.getenv("CORS_ORIGINS", "http://localhost:5173"))
    CORS_MAX_AGE = int(os.getenv("CORS_MAX_AGE", str(3 * 60 * 60)))

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me-before-deploying")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "evapi")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "evapi")
    JWT_EXPIRATION_SECONDS = int(os.getenv("JWT_EXPIRATION_SECONDS", "3600"))

    AUTH_RATE_MAX = int(os.getenv("AUTH_RATE_MAX", "12"))
    AUTH_RATE_WINDOW = int(os.getenv("AUTH_RATE_WINDOW", "60"))


class TestConfig(Config):
    TESTING = True
    APP_ENV = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"
    LOG_LEVEL = "WARNING"
    AUTH_RATE_MAX = 1000
