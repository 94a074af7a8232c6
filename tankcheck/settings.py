import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    APP_VERSION: str = "1.0.0"
    RULESET_VERSION: str = "v1-buffer-zone-weibull"

    # --- CONFIG ---
    ENV = os.getenv("TANKCHECK_ENV", "production")
    QUOTE_PROVIDER_URL = os.getenv("QUOTE_PROVIDER_URL", "")
    DEFAULT_CONTRACTOR_ID = os.getenv(
        "DEFAULT_CONTRACTOR_ID", "00000000-0000-0000-0000-000000000001"
    )

    # --- SAFETY LIMITS ---
    QUOTE_TIMEOUT_SECONDS = float(os.getenv("QUOTE_TIMEOUT_SECONDS", "10"))


@lru_cache
def get_settings():
    return Settings()
