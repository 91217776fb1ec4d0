"""Constants used throughout SK Units.

Base-unit names follow the SignalK specification.
"""

# Time decomposition
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400
MILLIS_PER_SECOND = 1000

# Special base units and categories
BOOL_BASE_UNIT = "bool"
BOOL_CATEGORY = "boolean"
SECONDS_BASE_UNIT = "s"
RFC3339_BASE_UNIT = "RFC 3339 (UTC)"
EPOCH_BASE_UNIT = "Epoch Seconds"

# Lowercase markers in a base-unit name that identify date/time values.
# A missing conversion is synthesised only for the first set; the second
# set routes an existing conversion through the date formatter.
DATE_TIME_BASE_MARKERS = ("rfc 3339", "iso-8601", "epoch seconds")
DATE_DISPATCH_MARKERS = ("rfc 3339", "iso-8601", "epoch")
EPOCH_MARKER = "epoch"

LOCAL_TIME_SUFFIX = "-local"
EPOCH_SECONDS_FORMAT = "epoch-seconds"

# Formatting
DEFAULT_DISPLAY_FORMAT = "0.0"
IDENTITY_FORMULA = "value"
FORMULA_VARIABLE = "value"

# Server endpoints
DEFAULT_API_PATH = "/signalk/v1/conversions"
DEFAULT_WS_PATH = "/signalk/v1/conversions/stream"
