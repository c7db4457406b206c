"""Constants for the Mill heater library."""

# API endpoints
ENDPOINT_STATUS = "/status"
ENDPOINT_CONTROL_STATUS = "/control-status"
ENDPOINT_OPERATION_MODE = "/operation-mode"
ENDPOINT_SET_TEMPERATURE = "/set-temperature"

AUTH_HEADER = "Authentication"
STATUS_OK = "ok"
TEMPERATURE_TYPE_NORMAL = "Normal"

PROTOCOL_HTTP = "http"
PROTOCOL_HTTPS = "https"
PROTOCOL_AUTO = "auto"
PROTOCOLS = (PROTOCOL_HTTP, PROTOCOL_HTTPS, PROTOCOL_AUTO)

UNIT_CELSIUS = "C"
UNIT_FAHRENHEIT = "F"
# Spelled-out units accepted in configuration
UNIT_ALIASES = {
    "c": UNIT_CELSIUS,
    "celsius": UNIT_CELSIUS,
    "f": UNIT_FAHRENHEIT,
    "fahrenheit": UNIT_FAHRENHEIT,
}

# Defaults
DEFAULT_TIMEOUT = 5.0  # seconds
DEFAULT_POLL_SECONDS = 10.0
DEFAULT_CACHE_TTL_MS = 2000
DEFAULT_MIN_TEMPERATURE = 5.0
DEFAULT_MAX_TEMPERATURE = 30.0
DEFAULT_TEMPERATURE_STEP = 0.5
DEFAULT_MANUFACTURER = "Mill"
DEFAULT_MODEL = "Gen 3/4 Heater"

# Values served before the first successful fetch
INITIAL_CURRENT_TEMPERATURE = 20.0
INITIAL_TARGET_TEMPERATURE = 21.0

# Temperature display unit characteristic values
DISPLAY_UNITS_CELSIUS = 0
DISPLAY_UNITS_FAHRENHEIT = 1

UUID_PREFIX = "mill-heater"
