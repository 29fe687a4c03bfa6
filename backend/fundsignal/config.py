from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    finnhub_api_key: str = ""
    edgar_user_agent: str = "fundsignal@example.com"

    http_timeout: float = 15.0
    finnhub_calls_per_minute: int = 60

    # Cache TTLs in seconds
    cik_map_ttl: int = 604800  # 7 days, whole directory
    company_facts_ttl: int = 21600  # 6h per CIK

    batch_max_tickers: int = 50

    model_config = {"env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
