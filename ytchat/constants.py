"""Application constants - centralized configuration values."""

# =============================================================================
# Request limits
# =============================================================================
MAX_URLS_PER_REQUEST = 3
DEFAULT_PAGE_SIZE = 50
DEFAULT_SNAPSHOT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 500

# =============================================================================
# Cache TTLs (in seconds) and bounds
# =============================================================================
TOKEN_CACHE_TTL = 15 * 60  # 15 minutes
MESSAGE_CACHE_TTL = 5 * 60  # 5 minutes
MESSAGE_REFRESH_INTERVAL = 10  # re-poll a video at most every 10 seconds
CHANNEL_NAME_CACHE_TTL = 24 * 60 * 60  # 24 hours
CHANNEL_VIDEOS_CACHE_TTL = 5 * 60  # 5 minutes
MAX_CACHED_MESSAGES = 2000

# =============================================================================
# Timeouts (in seconds unless noted)
# =============================================================================
HTTPX_TIMEOUT = 15.0
BROWSER_NAVIGATION_TIMEOUT_MS = 30_000
BROWSER_SELECTOR_TIMEOUT_MS = 10_000

# =============================================================================
# YouTube endpoints
# =============================================================================
YOUTUBE_BASE_URL = "https://www.youtube.com"
INNERTUBE_BASE_URL = f"{YOUTUBE_BASE_URL}/youtubei/v1"
LIVE_CHAT_ENDPOINT = "live_chat/get_live_chat"
UPDATED_METADATA_ENDPOINT = "updated_metadata"
NEXT_ENDPOINT = "next"

# =============================================================================
# Client identity
# =============================================================================
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)
CLIENT_NAME = "WEB"
CLIENT_FORM_FACTOR = "UNKNOWN_FORM_FACTOR"
DEFAULT_CLIENT_VERSION = "2.20240101.00.00"

HTML_HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
}

# =============================================================================
# Browser
# =============================================================================
BROWSER_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1280,720",
]
CHAT_FRAME_SELECTOR = "iframe#chatframe"
