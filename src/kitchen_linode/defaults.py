"""Default values for kitchen-linode configuration."""

# Linode API
LINODE_API_BASE = "https://api.linode.com/v4"
API_TOKEN_ENV_VARS = ("LINODE_TOKEN", "LINODE_API_KEY")

# Driver defaults
DEFAULT_USERNAME = "root"
DEFAULT_IMAGE = "linode/debian12"
DEFAULT_REGION = "us-southeast"
DEFAULT_TYPE = "g6-nanode-1"
DEFAULT_KERNEL = "linode/latest-64bit"
DEFAULT_SHELL = "bourne"
DEFAULT_PRIVATE_KEY = "~/.ssh/id_rsa"
SSH_TIMEOUT = 600  # seconds
EXIT_POLL_INTERVAL = 0.5  # seconds between remote exit-status checks

# Readiness polling
READY_TIMEOUT = 600  # seconds
READY_INTERVAL = 5   # seconds

# Instance labels
LABEL_PREFIX = "kitchen"
LABEL_MAX_LENGTH = 32  # Linode hard limit
LABEL_TRUNCATE_LENGTH = 30
JOB_NAME_FALLBACK = "job"

# Generated root password
PASSWORD_LENGTH = 15

# Type selectors below this are ids, at or above are RAM sizes in MB
TYPE_ID_CEILING = 1024

# Bootstrap retry
MAX_RETRIES = 10
MAX_INTERVAL = 60  # seconds
BACKOFF_EXPONENT_OFFSET = 1  # first wait is 2 ** -1 == 0.5s

# authorized_keys handling
AUTHORIZED_KEYS_MODES = ("check", "append")
DEFAULT_AUTHORIZED_KEYS_MODE = "check"

# State file location, relative to the working directory
STATE_DIR = ".kitchen"
