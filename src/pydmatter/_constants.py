"""Internal constants shared across the library."""

from datetime import timedelta

BASE_URL = "https://sunny-lolly-97f343.netlify.app"
USER_AGENT = "pydmatter/1"
GEOTAB_SERVER = "my.geotab.com"

# ------------------------------------------------------------------
# Proxy endpoints (Digital Matter OEM server behind serverless functions)
# ------------------------------------------------------------------

DEVICE_LIST_ENDPOINT = "/api/get-device-list"
GEOTAB_SERIAL_ENDPOINT = "/api/get-geotab-serial"
BATTERY_ENDPOINT = "/api/get-battery-data"
GET_PARAMS_ENDPOINT = "/api/get-device-params"
SET_PARAMS_ENDPOINT = "/api/set-device-params"
RECOVERY_MODE_ENDPOINT = "/api/send-recovery-mode"

# ------------------------------------------------------------------
# Async messaging (recovery mode)
# ------------------------------------------------------------------

RECOVERY_MESSAGE_TYPE = 3
RECOVERY_CAN_ADDRESS = 0xFFFFFFFF  # broadcast
RECOVERY_PAYLOAD: tuple[int, ...] = (3,)
RECOVERY_EXPIRY = timedelta(hours=1)

# ------------------------------------------------------------------
# Parameter sections
# ------------------------------------------------------------------

SECTION_BASIC_TRACKING = "2000"
SECTION_ALT_BASIC_TRACKING = "2050"
SECTION_ADVANCED_TRACKING = "2100"
