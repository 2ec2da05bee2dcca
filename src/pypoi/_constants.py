"""Internal constants shared across the library."""

USER_AGENT = "pypoi/1"

# ------------------------------------------------------------------
# Identifier namespaces
# ------------------------------------------------------------------

FACILITY_ID_PREFIX = "se:sundsvall:anlaggning:"
SENSOR_ID_PREFIX = "se:servanet:lora:"

# ------------------------------------------------------------------
# Source feed vocabulary
# ------------------------------------------------------------------

BEACH_CATEGORY = "Strandbad"
TRAIL_CATEGORY = "Motionsspår"

FIELD_DESCRIPTION = 1
FIELD_LENGTH = 99
FIELD_SENSOR = 230

#: Timestamp layout used by the source feed for ``created`` / ``updated``.
#: Values carry no offset and are local to the feed's municipality.
FEED_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FEED_TIME_ZONE = "Europe/Stockholm"

APIKEY_HEADER = "apikey"

# ------------------------------------------------------------------
# Live updates
# ------------------------------------------------------------------

STATUS_POLL_INTERVAL_S = 60.0
REQUEST_TIMEOUT_S = 30.0
TELEMETRY_TOPIC = "telemetry/temperature/water"
