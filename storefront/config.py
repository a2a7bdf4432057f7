"""Runtime configuration for the storefront (toggleable during tests/runtime)."""
import logging
import os
from typing import NamedTuple

from dotenv import load_dotenv

# Real environment variables win over .env entries
load_dotenv(".env", override=False)

DEFAULT_PAYSTACK_BASE_URL = "https://api.paystack.co"


class Settings(NamedTuple):
    paystack_public_key: str
    paystack_secret_key: str
    paystack_base_url: str
    paystack_timeout: float
    session_secret: str
    port: int
    log_level: str


def load_settings() -> Settings:
    return Settings(
        paystack_public_key=os.getenv("PAYSTACK_PUBLIC_KEY", ""),
        paystack_secret_key=os.getenv("PAYSTACK_SECRET_KEY", ""),
        paystack_base_url=os.getenv("PAYSTACK_BASE_URL", DEFAULT_PAYSTACK_BASE_URL),
        paystack_timeout=float(os.getenv("PAYSTACK_TIMEOUT", "30")),
        session_secret=os.getenv("SESSION_SECRET", "dev_secret"),
        port=int(os.getenv("PORT", "3000")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


state = load_settings()


def get_settings() -> Settings:
    return state


def override_settings(**changes) -> Settings:
    global state
    state = state._replace(**changes)
    return state


def reset_settings() -> Settings:
    global state
    state = load_settings()
    return state


def configure_logging():
    logging.basicConfig(
        level=state.log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
