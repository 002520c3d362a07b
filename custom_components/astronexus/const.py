DOMAIN = "astronexus"
VERSION = "0.3.0"

ISS_CATALOG_NUMBER = 25544
ISS_NAME = "International Space Station"

# Source endpoints
POSITION_API_URL = f"https://api.wheretheiss.at/v1/satellites/{ISS_CATALOG_NUMBER}"
PASS_API_URL = "https://api.open-notify.org/iss-pass.json"
ALT_PASS_API_URL = "https://api.g7vrd.co.uk/v1/satellite-passes/{catalog}/{lat}/{lon}.json"
ELEMENTS_API_URL = "https://celestrak.org/NORAD/elements/gp.php"
KP_INDEX_URL = "https://services.swpc.noaa.gov/products/noaa-planetary-k-index-1-minute.json"
SOLAR_WIND_URL = "https://services.swpc.noaa.gov/products/solar-wind/plasma-1-day.json"
LAUNCHES_API_URL = "https://ll.thespacedevs.com/2.2.0/launch/upcoming/"

# Pass-through proxies used for the direct pass service.
# Each template receives the fully built (already encoded) target URL.
CORS_PROXY_TEMPLATES: tuple[str, ...] = (
    "https://corsproxy.io/?{url}",
    "https://api.allorigins.win/raw?url={url}",
)

# Per-source request timeouts (milliseconds)
DEFAULT_TIMEOUT_MS = 8000
POSITION_TIMEOUT_MS = 6000
PASS_TIMEOUT_MS = 8000
PROXY_TIMEOUT_MS = 12000
ALT_PASS_TIMEOUT_MS = 8000
ELEMENTS_TIMEOUT_MS = 7000
WEATHER_TIMEOUT_MS = 8000
LAUNCHES_TIMEOUT_MS = 12000

# Refresh intervals and staleness windows (seconds)
POSITION_INTERVAL = 10
PASS_INTERVAL = 900
WEATHER_INTERVAL = 300
LAUNCHES_INTERVAL = 300

# Local propagation scan
PASS_SEARCH_HORIZON = 6 * 3600   # seconds ahead of "now"
PASS_SEARCH_STEP = 10            # seconds between samples

# Observer coordinates are rounded to this many decimals (~1 km) for cache keys
OBSERVER_KEY_PRECISION = 2

# Space weather
HISTORY_LENGTH = 12
KP_COLUMN = 1
KP_MAX = 9.0
SOLAR_WIND_SPEED_COLUMN = 2
SOLAR_WIND_FALLBACK_COLUMN = 1

# Launches
DEFAULT_LAUNCH_COUNT = 4
MAX_LAUNCH_COUNT = 10
UNKNOWN_PROVIDER = "Unknown provider"
UNKNOWN_VEHICLE = "Unknown vehicle"
UNKNOWN_SITE = "Launch site TBA"
UNKNOWN_STATUS = "tbd"
UNKNOWN_PAYLOAD = "Payload details not provided"

GENERIC_PASS_FAILURE = "Could not fetch pass prediction for this location"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_LATITUDE = "latitude"
CONF_LONGITUDE = "longitude"
CONF_LAUNCH_COUNT = "launch_count"
CONF_EXPLAINER_API_KEY = "explainer_api_key"

SERVICE_EXPLAIN = "explain"
