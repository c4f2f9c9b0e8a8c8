"""
Engine Configuration

All tunables are read from the environment (a local .env file is loaded first).

Usage:
    from settings import PROVIDER_QUOTE_TIMEOUT_SECONDS, ENABLED_PROVIDERS
"""

import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> list:
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FILE = os.environ.get("LOG_FILE", "./logger/log.log")

# Provider calls
PROVIDER_HTTP_TIMEOUT_SECONDS = float(os.environ.get("PROVIDER_HTTP_TIMEOUT_SECONDS", "10"))
PROVIDER_QUOTE_TIMEOUT_SECONDS = float(os.environ.get("PROVIDER_QUOTE_TIMEOUT_SECONDS", "15"))
TRANSIENT_RETRY_COUNT = int(os.environ.get("TRANSIENT_RETRY_COUNT", "1"))  # quote + serviceability only

# Credentials
TOKEN_EXPIRY_BUFFER_SECONDS = int(os.environ.get("TOKEN_EXPIRY_BUFFER_SECONDS", "300"))
AUTH_RETRY_COUNT = int(os.environ.get("AUTH_RETRY_COUNT", "1"))  # transient network errors only

# Serviceability fallback policy: when a provider's serviceability call fails,
# treat the pincode as serviceable instead of raising ProviderAPIError
OPTIMISTIC_SERVICEABILITY = _env_bool("OPTIMISTIC_SERVICEABILITY", False)

ENABLED_PROVIDERS = _env_list(
    "ENABLED_PROVIDERS", "delhivery,xpressbees,ekart,bluedart,ecom-express"
)

# Rate cards: JSON file overriding data/rate_cards.py when set
RATE_CARD_PATH = os.environ.get("RATE_CARD_PATH", "")

# Manual bookings
MANUAL_TRACKING_BASE_URL = os.environ.get(
    "MANUAL_TRACKING_BASE_URL", "https://track.metaport.in/"
)
SUPPORT_CONTACT = os.environ.get("SUPPORT_CONTACT", "Metaport support")

# Public rate endpoint limit (slowapi syntax)
RATE_LIMIT = os.environ.get("RATE_LIMIT", "120/minute")

# Courier credentials
DELHIVERY_API_TOKEN = os.environ.get("DELHIVERY_API_TOKEN", "")

XPRESSBEES_USERNAME = os.environ.get("XPRESSBEES_USERNAME", "")
XPRESSBEES_PASSWORD = os.environ.get("XPRESSBEES_PASSWORD", "")
XPRESSBEES_SECRET_KEY = os.environ.get("XPRESSBEES_SECRET_KEY", "")
XPRESSBEES_CLIENT_ID = os.environ.get("XPRESSBEES_CLIENT_ID", "")
XPRESSBEES_CLIENT_NAME = os.environ.get("XPRESSBEES_CLIENT_NAME", "")

EKART_CLIENT_ID = os.environ.get("EKART_CLIENT_ID", "")
EKART_USERNAME = os.environ.get("EKART_USERNAME", "")
EKART_PASSWORD = os.environ.get("EKART_PASSWORD", "")

BLUEDART_CLIENT_ID = os.environ.get("BLUEDART_CLIENT_ID", "")
BLUEDART_CLIENT_SECRET = os.environ.get("BLUEDART_CLIENT_SECRET", "")
BLUEDART_LOGIN_ID = os.environ.get("BLUEDART_LOGIN_ID", "")
BLUEDART_LICENCE_KEY = os.environ.get("BLUEDART_LICENCE_KEY", "")
BLUEDART_CUSTOMER_CODE = os.environ.get("BLUEDART_CUSTOMER_CODE", "")

ECOM_USERNAME = os.environ.get("ECOM_USERNAME", "")
ECOM_PASSWORD = os.environ.get("ECOM_PASSWORD", "")

# Database (booking ledger + local serviceability dataset)
DATABASE_URL = os.environ.get("DATABASE_URL", "")


def provider_credentials() -> dict:
    """Credential dicts per courier slug, in the shape each adapter expects."""
    return {
        "delhivery": {"token": DELHIVERY_API_TOKEN},
        "xpressbees": {
            "username": XPRESSBEES_USERNAME,
            "password": XPRESSBEES_PASSWORD,
            "secretkey": XPRESSBEES_SECRET_KEY,
            "client_id": XPRESSBEES_CLIENT_ID,
            "client_name": XPRESSBEES_CLIENT_NAME,
        },
        "ekart": {
            "client_id": EKART_CLIENT_ID,
            "username": EKART_USERNAME,
            "password": EKART_PASSWORD,
        },
        "bluedart": {
            "client_id": BLUEDART_CLIENT_ID,
            "client_secret": BLUEDART_CLIENT_SECRET,
            "login_id": BLUEDART_LOGIN_ID,
            "licence_key": BLUEDART_LICENCE_KEY,
            "customer_code": BLUEDART_CUSTOMER_CODE,
        },
        "ecom-express": {"username": ECOM_USERNAME, "password": ECOM_PASSWORD},
    }
