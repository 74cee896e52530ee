"""Application constants."""

USER_AGENT = "station-geodata/2.0 (+bulk station refresh)"
COMMANDS = (
    "regen",
    "rail",
    "mac",
)
DEFAULT_AIRPORT_TYPES = ("Airports", "Other Airport")
RAIL_TYPE = "Railway Stations"
MAC_TYPE = "Mac Airports"
STATION_CSV_HEADERS = (
    "code",
    "lat",
    "lon",
    "name",
    "city",
    "state",
    "country",
    "woeid",
    "tz",
    "phone",
    "type",
    "email",
    "url",
    "runway_length",
    "elev",
    "icao",
    "direct_flights",
    "carriers",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
