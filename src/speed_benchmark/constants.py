# Defaults
DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_DURATION = 12.0  # seconds
DEFAULT_STREAMS = 4
DEFAULT_CHUNK_SIZE = 64 * 1024
DEFAULT_DOWNLOAD_MB = 50
DEFAULT_PING_COUNT = 6
DEFAULT_TIMEOUT = 5.0  # seconds

MIN_CHUNK_SIZE = 1024
MEGABYTE = 1024 * 1024

# Timing
PING_PAUSE = 0.15  # seconds between ping samples
PHASE_GRACE = 5.0  # extra seconds on top of the test duration per phase
PROGRESS_INTERVAL = 0.2  # seconds
PROGRESS_QUEUE_SIZE = 16
PING_PERCENTILE = 0.95

# Phases
PHASE_PING = "ping"
PHASE_DOWNLOAD = "download"
PHASE_UPLOAD = "upload"

# Endpoints
PING_PATH = "/ping"
DOWNLOAD_PATH = "/download"
UPLOAD_PATH = "/upload"
