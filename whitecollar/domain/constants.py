"""Domain business rules and constants."""

from typing import Final

# Business Rules - Core domain constraints
MAX_NAME_LENGTH: Final = 100
MAX_AUTHOR_LENGTH: Final = 100
PRICE_MAX_DIGITS: Final = 10
PRICE_DECIMAL_PLACES: Final = 2

# Ids and capacities are stored as signed 64-bit integers
MAX_ID: Final = 2**63 - 1
MAX_CAPACITY: Final = 2**63 - 1

# Author recorded for pictures submitted without one
ANONYMOUS_AUTHOR: Final = "ANONYMOUS"

# Per-shop picture numbering starts here
FIRST_PICTURE_ID: Final = 1

# Capacity rejection wording
INSUFFICIENT_CAPACITY_CODE: Final = "insufficient_capacity"
INSUFFICIENT_CAPACITY_TITLE: Final = "Please select another shop."
INSUFFICIENT_CAPACITY_DETAIL: Final = "The store does not have enough capacity."
