"""airmon system configuration loaded from environment variables."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load .env file if it exists
env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)

# ============================================================================
# Server Configuration
# ============================================================================

SERVER_HOST = os.getenv('AIRMON_HOST', '0.0.0.0')
SERVER_PORT = int(os.getenv('AIRMON_PORT', '8553'))

# ============================================================================
# Store Configuration
# ============================================================================

# The sensor reports 3 data points every 2 seconds, so one hour of history
# needs 3600 / 2 * 3 == 5400 slots.
STORE_CAPACITY = int(os.getenv('STORE_CAPACITY', '5400'))
SNAPSHOT_PATH = Path(os.getenv('SNAPSHOT_PATH', 'saved_data.json'))

# ============================================================================
# Long-Poll Configuration
# ============================================================================

LONG_POLL_TIMEOUT = float(os.getenv('LONG_POLL_TIMEOUT', '60.0'))

# ============================================================================
# Ingestion Configuration
# ============================================================================

SENSOR_SOURCE = os.getenv('SENSOR_SOURCE', 'mock').lower()
MOCK_INTERVAL = float(os.getenv('MOCK_INTERVAL', '0.667'))
MOCK_DATA_SEED = int(os.getenv('MOCK_DATA_SEED', '42'))

# ============================================================================
# Dashboard Client Configuration
# ============================================================================

CLIENT_CAPACITY = int(os.getenv('CLIENT_CAPACITY', '1000'))
CLIENT_SERVER_URL = os.getenv('CLIENT_SERVER_URL', f'http://127.0.0.1:{SERVER_PORT}')

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE', '')
LOG_FORMAT = os.getenv('LOG_FORMAT', 'detailed')

# ============================================================================
# Validation
# ============================================================================

def validate_config() -> None:
    """Validate configuration values."""
    errors = []

    if not (0 < SERVER_PORT < 65536):
        errors.append("AIRMON_PORT must be between 1 and 65535")

    if STORE_CAPACITY <= 0:
        errors.append("STORE_CAPACITY must be positive")

    if CLIENT_CAPACITY <= 0:
        errors.append("CLIENT_CAPACITY must be positive")

    if LONG_POLL_TIMEOUT <= 0:
        errors.append("LONG_POLL_TIMEOUT must be positive")

    if MOCK_INTERVAL <= 0:
        errors.append("MOCK_INTERVAL must be positive")

    if SENSOR_SOURCE not in ('mock', 'stdin'):
        errors.append("SENSOR_SOURCE must be one of: mock, stdin")

    if LOG_FORMAT not in ('json', 'detailed', 'simple'):
        errors.append("LOG_FORMAT must be one of: json, detailed, simple")

    if errors:
        raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))


# ============================================================================
# Logging Setup
# ============================================================================

LOG_FORMATS = {
    'json': '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}',
    'detailed': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    'simple': '%(levelname)s: %(message)s',
}

# Loggers that would drown airmon's own output; every long poll is an access log line
NOISY_LOGGERS = ('uvicorn.access', 'urllib3')


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure root logging for the airmon entrypoints (server and dashboard)."""
    import logging
    import sys

    formatter = logging.Formatter(LOG_FORMATS[LOG_FORMAT])
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = LOG_FILE if log_file is None else log_file
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        handlers=handlers,
        force=True
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# Validate config on import
validate_config()
