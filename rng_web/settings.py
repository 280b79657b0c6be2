from pydantic import AnyHttpUrl, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    RANDOM_ORG_API_KEY: SecretStr = SecretStr("")
    RANDOM_ORG_URL: AnyHttpUrl = "https://api.random.org/json-rpc/4/invoke"
    PROVIDER_TIMEOUT: float = 10.0
    PROOF_TTL_SECONDS: float = 6 * 60 * 60

    PASSPHRASE_SHA256: str = ""
    SESSION_TTL_SECONDS: float = 24 * 60 * 60
    SESSION_COOKIE: str = "rng_sid"
    COOKIE_SECURE: bool = True
    LOGIN_RATE_LIMIT: str = "30/15minutes"
    LOGIN_FAILURE_DELAY: float = 0.35
    RATE_LIMIT_ENABLED: bool = True

    LOG_LEVEL: str = "info"
    SERVICE_VERSION: str = "v0.2.0"
    PORT: int = 8080

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
