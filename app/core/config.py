from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    PROJECT_NAME: str = "Startup Nation API"
    API_V1_STR: str = "/v1"
    SECRET_KEY: str = "YOUR_SECRET_KEY_HERE_CHANGE_IN_PRODUCTION"
    ALGORITHM: str = "HS256"
    # Sessions last 30 days, same as the web client's cookie
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30
    SESSION_COOKIE_NAME: str = "startup_nation_session"

    # bcrypt work factor for stored password hashes
    BCRYPT_ROUNDS: int = 12

    LOG_LEVEL: str = "INFO"

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///./startup_nation.db"

    BACKEND_CORS_ORIGINS: List[str] = []

    # Base origin of the web client. Post sign-in redirects are resolved
    # against it and anything off-origin falls back to DEFAULT_LOGIN_REDIRECT.
    FRONTEND_URL: str = "http://localhost:3000"
    DEFAULT_LOGIN_REDIRECT: str = "/feed"

    # OAuth providers
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_CLIENT_SECRET: str = ""
    GOOGLE_REDIRECT_URI: str = "http://localhost:8000/v1/auth/google/callback"
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    GITHUB_REDIRECT_URI: str = "http://localhost:8000/v1/auth/github/callback"

    # Route guard
    PUBLIC_PATH_PREFIXES: List[str] = ["/login", "/register", "/api/auth"]
    PROTECTED_PATH_PREFIXES: List[str] = [
        "/feed",
        "/explore",
        "/chat",
        "/submit",
        "/profile",
        "/dashboard",
    ]
    # Guarded only as the exact path, not as a prefix
    PROTECTED_EXACT_PATHS: List[str] = ["/onboarding"]

    model_config = SettingsConfigDict(
        case_sensitive=True, env_file=".env", extra="ignore"
    )


settings = Settings()
