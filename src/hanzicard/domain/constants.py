"""Centralized constants for hanzicard.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Target script (CJK Unified Ideographs) ----------
CJK_RANGES = (
    (0x4E00, 0x9FFF),  # Unified Ideographs
    (0x3400, 0x4DBF),  # Extension A
    (0x20000, 0x2A6DF),  # Extension B
)

# ---------- Lookup ----------
UNKNOWN_MEANING = "Not in dictionary"
REMOTE_DEFAULT_MEANING = "Unknown"

# ---------- Anthropic Messages API ----------
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-sonnet-4-20250514"
CHARACTER_MAX_TOKENS = 2048
WORD_MAX_TOKENS = 1024
OCR_MAX_TOKENS = 1024
REQUEST_TIMEOUT = 60.0
NO_CHINESE_TEXT = "NO_CHINESE_TEXT"

# ---------- SM-2 ----------
DEFAULT_INTERVAL = 1
DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15
HARD_INTERVAL_MULTIPLIER = 1.2
EASY_INTERVAL_MULTIPLIER = 1.3
MASTERED_INTERVAL_DAYS = 21

# ---------- Images ----------
OCR_MAX_DIMENSION = 1024
STORAGE_MAX_DIMENSION = 1200
JPEG_QUALITY = 80
PHOTOS_DIR_NAME = "CapturedPhotos"
STORE_FILE_NAME = "collection.json"
