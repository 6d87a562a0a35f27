from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "Revenue Pulse"
    version: str = "0.1.0"
    DEBUG: bool = False

    # Whop commerce platform
    WHOP_COMPANY_ID: str = ""  # Company scope for memberships, products and plans
    WHOP_API_KEY: str = ""
    WHOP_API_BASE_URL: str = "https://api.whop.com/api/v1"
    WHOP_API_TIMEOUT: float = 30.0  # seconds

    # Fetch retries
    FETCH_MAX_ATTEMPTS: int = 3
    FETCH_INITIAL_DELAY_MS: int = 1000

    # Page sizes per collection
    MEMBERSHIPS_PAGE_SIZE: int = 1000
    PAYMENTS_PAGE_SIZE: int = 1000
    PRODUCTS_PAGE_SIZE: int = 100
    PLANS_PAGE_SIZE: int = 1000

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"

    @property
    def company_configured(self) -> bool:
        return bool(self.WHOP_COMPANY_ID.strip())


settings = Settings()
