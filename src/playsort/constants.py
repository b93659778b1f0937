"""Shared constants for host selectors, sort options and defaults."""

DIRECTIONS = ("asc", "desc")
KEY_KINDS = ("duration", "channel")

RESULT_CONVERGED = "converged"
RESULT_CANCELLED = "cancelled"

# Literal used for rows whose channel label cannot be read.
CHANNEL_NOT_AVAILABLE = "Not Available"
DURATION_SEPARATOR = ":"

PLAYLIST_URL_MARKER = "playlist?list="

# Structural contract of the playlist page. Order of ROW_SELECTOR matches visual order.
ROW_SELECTOR = "ytd-playlist-video-list-renderer ytd-playlist-video-renderer"
DURATION_SELECTOR = "a#thumbnail #text"
CHANNEL_SELECTOR = "#byline-container a.yt-formatted-string, ytd-channel-name a"
HANDLE_SELECTOR = "yt-icon#reorder"
LOADING_SENTINEL_SELECTOR = ".ytd-continuation-item-renderer, ytd-continuation-item-renderer"
TOTAL_COUNT_SELECTOR = (
    "ytd-playlist-byline-renderer yt-formatted-string, "
    "#stats yt-formatted-string, "
    ".metadata-stats yt-formatted-string"
)

DEFAULT_SCROLL_DELAY_MS = 500
DEFAULT_POST_MOVE_DELAY_MS = 1800
DEFAULT_SETTLE_MS_PER_100_ITEMS = 0
DEFAULT_TARGET_SCROLL_ATTEMPTS = 3
# Upper bound for "scroll to bottom until the offset stops changing".
MAX_BOTTOM_SCROLL_ROUNDS = 200

LOAD_RETRY_ATTEMPTS = 5
NOT_READY_RETRY_ATTEMPTS = 10
STALE_RETRY_ATTEMPTS = 3
STUCK_MOVE_ATTEMPTS = 3

LARGE_LIST_WARNING = 300
HUGE_LIST_WARNING = 600

ENV_SCROLL_DELAY_MS = "PLAYSORT_SCROLL_DELAY_MS"
ENV_POST_MOVE_DELAY_MS = "PLAYSORT_POST_MOVE_DELAY_MS"
ENV_DIRECTION = "PLAYSORT_DIRECTION"
ENV_KEY = "PLAYSORT_KEY"
