from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Core ---
    PROJECT_NAME: str = "ShopLocal"
    DATABASE_URL: str = "sqlite:///./shoplocal.db"
    REDIS_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # --- Startup ---
    DB_MAX_RETRIES: int = 10
    DB_RETRY_WAIT_SECONDS: int = 3

    # --- Sessions / Cart ---
    SESSION_TTL: int = 24 * 60 * 60  # 24 hours, same as the web session cookie
    CART_TTL: int = 7 * 24 * 60 * 60
    SESSION_COOKIE_NAME: str = "session"

    # --- Orders ---
    # Max difference allowed between a client total and the recomputed one.
    ORDER_TOTAL_TOLERANCE: float = 0.01

    # --- Real-time ---
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5000"]

    # --- Payments ---
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: Optional[str] = None
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_PUBLISHABLE_KEY: Optional[str] = None
    PAYMENT_CURRENCY: str = "INR"

    # --- Optional Postgres bits (docker-compose .env) ---
    POSTGRES_USER: Optional[str] = None
    POSTGRES_PASSWORD: Optional[str] = None
    POSTGRES_DB: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"  # .env is shared with docker-compose, ignore unknown keys
    )

settings = Settings()
