"""
Configuration settings for the address book.
Values marked (env) can be overridden from the environment or a .env file.
"""

import os
from dotenv import load_dotenv

from .core.types import ValidationLevel

load_dotenv()


def parse_validation_level(name: str) -> ValidationLevel:
    """Resolve a validation level by name, case-insensitively"""
    try:
        return ValidationLevel[name.strip().upper()]
    except KeyError:
        accepted = ", ".join(level.name for level in ValidationLevel)
        raise ValueError(
            f"Invalid ADDRESSBOOK_VALIDATION_LEVEL '{name}', expected one of: {accepted}"
        ) from None


###################
# Duplicate Detection
###################

# Weight of the last name similarity in a pair score
LAST_NAME_WEIGHT: float = 0.35

# Weight of the first name similarity in a pair score
FIRST_NAME_WEIGHT: float = 0.35

# Awarded only when both phone values are present and exactly equal
PHONE_WEIGHT: float = 0.30

# A pair is flagged when its score is strictly greater than this (env)
DUPLICATE_THRESHOLD: float = float(os.getenv("ADDRESSBOOK_DUPLICATE_THRESHOLD", "0.70"))

###################
# Validation
###################

# Level applied when contacts are created or imported (env)
VALIDATION_LEVEL: ValidationLevel = parse_validation_level(
    os.getenv("ADDRESSBOOK_VALIDATION_LEVEL", "BASIC")
)

# Region used to parse phone numbers written without a country prefix (env)
DEFAULT_PHONE_REGION: str = os.getenv("ADDRESSBOOK_PHONE_REGION", "SN")

###################
# Processing Options
###################

# Default page size for paginated listings
DEFAULT_PAGE_SIZE: int = 20

# Number of entries kept in the top cities / countries statistics
TOP_N_STATISTICS: int = 5

# Default encoding for reading and writing contact files (env)
DEFAULT_ENCODING: str = os.getenv("ADDRESSBOOK_ENCODING", "utf-8")
