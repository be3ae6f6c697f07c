"""Infrastructure and technical constants."""

from typing import Final

# Technical configuration constants
DEFAULT_PORT: Final = 8000
DEFAULT_METRICS_PORT: Final = 8080
DEFAULT_ADMISSION_MAX_ATTEMPTS: Final = 3

# Ids bound per DELETE statement, well below SQLite's parameter limit
DELETE_BATCH_SIZE: Final = 500
