"""Common configuration constants used across the application."""

VERSION = "1.2.0"
"""Application version, stored in the state file"""

# HTTP and Network Constants
DEFAULT_TIMEOUT = 30.0
"""Default HTTP request timeout in seconds"""

BEACON_TIMEOUT = 5.0
"""Timeout for beacon node requests in seconds"""

TELEGRAM_POLL_TIMEOUT = 10
"""Long-polling timeout for Telegram getUpdates in seconds"""

# Retry Configuration
MAX_RETRIES = 5
"""Default maximum number of retry attempts"""

FETCH_MAX_RETRIES = 4
"""Maximum attempts for a single block fetch before surfacing the error"""

RETRY_BASE_DELAY = 1.0
"""Base delay for exponential backoff in seconds"""

RETRY_MAX_DELAY = 16.0
"""Maximum delay between retries in seconds"""

# Block and Slot Constants
SECONDS_PER_SLOT = 12
"""Fixed beacon chain slot duration in seconds"""

SLOTS_PER_EPOCH = 32
"""Number of slots in one epoch"""

ALTAIR_FORK_EPOCH = 74_240
"""Epoch at which the Altair fork activated on mainnet"""

ALTAIR_FORK_SLOT = ALTAIR_FORK_EPOCH * SLOTS_PER_EPOCH
"""First slot served by the v2 block endpoint (2,371,680)"""

ALTAIR_FORK_TIME = 1_635_332_183
"""Unix timestamp of the Altair fork slot"""

# Scheduler Timing
PROPAGATION_DELAY = 3.0
"""Grace period after a slot's expected time before fetching it"""

MIN_SLOT_SLEEP = 0.3
"""Minimum sleep between slot fetches while catching up (API rate limit)"""

FETCH_ERROR_DELAY = 5.0
"""Delay before retrying the same slot after a failed fetch"""

STATE_SAVE_INTERVAL = SLOTS_PER_EPOCH
"""Processed slots between two writes of the state file"""

# Delivery Constants
DEFAULT_RATE_LIMIT = 5
"""Default outbound messages per second"""

DISPATCH_POLL_INTERVAL = 0.5
"""Interval between send queue polls in seconds"""

DEFAULT_COMMAND_COOLDOWN = 5
"""Seconds a chat must wait between two commands"""

# Links
BEACONCHAIN_VALIDATOR_URL = "https://beaconcha.in/validator/"
"""beaconcha.in validator page prefix"""

BEACONCHAIN_SLOT_URL = "https://beaconcha.in/slot/"
"""beaconcha.in slot page prefix"""


__all__ = [
    "ALTAIR_FORK_EPOCH",
    "ALTAIR_FORK_SLOT",
    "ALTAIR_FORK_TIME",
    "BEACONCHAIN_SLOT_URL",
    "BEACONCHAIN_VALIDATOR_URL",
    "BEACON_TIMEOUT",
    "DEFAULT_COMMAND_COOLDOWN",
    "DEFAULT_RATE_LIMIT",
    "DEFAULT_TIMEOUT",
    "DISPATCH_POLL_INTERVAL",
    "FETCH_ERROR_DELAY",
    "FETCH_MAX_RETRIES",
    "MAX_RETRIES",
    "MIN_SLOT_SLEEP",
    "PROPAGATION_DELAY",
    "RETRY_BASE_DELAY",
    "RETRY_MAX_DELAY",
    "SECONDS_PER_SLOT",
    "SLOTS_PER_EPOCH",
    "STATE_SAVE_INTERVAL",
    "TELEGRAM_POLL_TIMEOUT",
    "VERSION",
]
