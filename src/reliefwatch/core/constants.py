"""
ReliefWatch - Constants
Cache namespaces, thresholds and prompt templates shared across modules.
"""

# =============================================================================
# CACHE
# =============================================================================

# One hour, matching the upstream data freshness we accept
DEFAULT_CACHE_TTL_SECONDS = 60 * 60

GEOCODE_CACHE_PREFIX = "geocode"
LOCATION_EXTRACT_CACHE_PREFIX = "location_extract"
IMAGE_VERIFY_CACHE_PREFIX = "image_verify"

# Texts sharing this prefix share a cache entry
EXTRACTION_KEY_LENGTH = 100

# =============================================================================
# LOCATION EXTRACTION
# =============================================================================

UNKNOWN_LOCATION = "Unknown location"

LOCATION_EXTRACTION_PROMPT = (
    "Extract the location names from the following text. "
    "Only return the location name, nothing else. "
    "If multiple locations are mentioned, return the most specific one. "
    'If no location is mentioned, return "Unknown location".\n\n'
    "Text: {text}"
)

EXTRACTION_GENERATION_CONFIG = {
    "temperature": 0.2,
    "maxOutputTokens": 100,
}

# =============================================================================
# IMAGE VERIFICATION
# =============================================================================

IMAGE_VERIFICATION_PROMPT = (
    "Analyze this disaster image. Is it authentic or manipulated? "
    'Does it match the following description: "{description}"? '
    "Provide a brief analysis and a verification score from 0-100 "
    "(0 being definitely fake, 100 being definitely authentic)."
)

VERIFICATION_GENERATION_CONFIG = {
    "temperature": 0.2,
    "maxOutputTokens": 800,
}

DEFAULT_IMAGE_MIME_TYPE = "image/jpeg"
UNANALYZED_IMAGE_TEXT = "Unable to analyze image"

# Authenticity score thresholds (0-100)
VERIFIED_SCORE_MIN = 70
FAKE_SCORE_MAX = 30
NEUTRAL_SCORE = 50
MAX_SCORE = 100

# =============================================================================
# EVENTS
# =============================================================================

REPORT_UPDATED_EVENT = "report_updated"

# =============================================================================
# LOGGING
# =============================================================================

APP_LOGGER_NAME = "reliefwatch"
VERIFICATION_LOGGER_NAME = "reliefwatch.verification"
