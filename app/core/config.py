from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"

    # Transfers between two accounts of the same user
    ALLOW_OWN_ACCOUNT_TRANSFER: bool = True

    # Retry policy for lock timeouts / serialization failures
    TX_MAX_ATTEMPTS: int = 5
    TX_RETRY_MIN_WAIT: float = 0.05
    TX_RETRY_MAX_WAIT: float = 1.0
    LOCK_TIMEOUT_MS: int = 5000

    REGISTER_RATE_LIMIT: int = 3
    REGISTER_RATE_WINDOW_SECONDS: float = 20.0
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: float = 12.0
    PURCHASE_RATE_LIMIT: int = 10
    PURCHASE_RATE_WINDOW_SECONDS: float = 6.0

    ADMIN_EMAIL: str | None = None
    ADMIN_USERNAME: str | None = None
    ADMIN_PASSWORD: str | None = None
    ADMIN_FULL_NAME: str | None = None

    SEED_DEMO_PRODUCTS: bool = False

    # This configures how the settings are loaded
    model_config = SettingsConfigDict(env_file=".env")

# Create a single instance to be used across the app
settings = Settings()
