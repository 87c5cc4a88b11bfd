API_VERSION_HEADER = "X-OrgKeeper-Version"
REQUEST_ID_HEADER = "X-Request-ID"

AUTH_HEADER = "Authorization"
AUTH_SCHEME = "bearer"

# Paths served without request logging
QUIET_PATHS = {"/health", "/health/liveness"}

# Bulk member add
MAX_BULK_USER_IDS = 100
