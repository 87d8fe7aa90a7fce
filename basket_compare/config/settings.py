# basket_compare/config/settings.py

"""Central configuration for the basket_compare engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: list[str]) -> list[str]:
    """Read a comma-separated list from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag (1/true/yes) from the environment."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the basket_compare engine."""

    # --- Fetching ---
    FETCH_TIMEOUT: float = 8.0          # Per-fetch race budget (secs)
    FETCH_CACHE_TTL: float = 300.0      # Fetched page cache lifetime (secs)
    MIN_BODY_LENGTH: int = 1000         # Shorter bodies are rejected
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]

    # --- Retry policy (per source) ---
    MAX_RETRIES: int = 3                # Attempts per source search
    RETRY_BASE_DELAY: float = 1.0       # First backoff (secs)
    RETRY_MULTIPLIER: float = 2.0
    RETRY_MAX_DELAY: float = 8.0

    # --- Orchestration ---
    SEARCH_DEADLINE: float = 25.0       # Global fan-out budget (secs)

    # --- Matching ---
    SIMILARITY_THRESHOLD: float = 0.7
    REPRESENTATIVE_SIMILARITY: float = 0.9
    PLACEHOLDER_IMAGE: str = "/placeholder.svg"

    # --- Transports ---
    PROXY_URLS: list[str] = _env_list("BASKET_PROXY_URLS", [])
    RELAY_PREFIXES: list[str] = _env_list(
        "BASKET_RELAY_PREFIXES",
        [
            "https://api.allorigins.win/raw?url=",
            "https://corsproxy.io/?",
            "https://api.codetabs.com/v1/proxy?quest=",
        ],
    )
    USE_CLOUDSCRAPER: bool = _env_flag("BASKET_USE_CLOUDSCRAPER", True)

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-IN,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- HTTP server ---
    HOST: str = os.getenv("BASKET_HOST", "127.0.0.1")
    PORT: int = int(os.getenv("BASKET_PORT", "3001"))
    DEFAULT_LAT: float = float(os.getenv("BASKET_DEFAULT_LAT", "12.9716"))
    DEFAULT_LON: float = float(os.getenv("BASKET_DEFAULT_LON", "77.5946"))

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("BASKET_LOG_LEVEL", "WARNING")  # stderr only

    # --- Health checks ---
    HEALTH_SLOW_MS: float = 5000.0

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = Path(__file__).resolve().parent / "selectors.json"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (order is the merge priority) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "zepto",
            "label": "Zepto",
            "homepage": "https://www.zeptonow.com/",
            "search_url": (
                "https://www.zeptonow.com/search"
                "?query={query}&lat={lat}&lon={lon}"
            ),
        },
        {
            "id": "blinkit",
            "label": "Blinkit",
            "homepage": "https://blinkit.com/",
            "search_url": (
                "https://blinkit.com/s/"
                "?q={query}&lat={lat}&lon={lon}"
            ),
        },
        {
            "id": "instamart",
            "label": "Instamart",
            "homepage": "https://www.swiggy.com/instamart",
            "search_url": (
                "https://www.swiggy.com/instamart/search"
                "?custom_back=true&query={query}&lat={lat}&lon={lon}"
            ),
        },
    ]
