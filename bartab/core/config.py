import os

# Database Configuration
# Snapshots of the bar state are stored through Tortoise; SQLite file by default
DB_URL = os.getenv("DATABASE_URL", "sqlite://bartab.sqlite3")

# Application Metadata
PROJECT_NAME = "Bartab Order & Inventory Service"
VERSION = "1.0.0"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Venue Configuration
VENUE_TIMEZONE = os.getenv("VENUE_TIMEZONE", "UTC") # Happy hour windows use the local hour of the venue
ALLOW_DUPLICATE_TABLE_NAMES = os.getenv("ALLOW_DUPLICATE_TABLE_NAMES", "true").lower() in ("1", "true", "yes")

# Happy hour window applied when a product has none configured
DEFAULT_HAPPY_HOUR_START = int(os.getenv("DEFAULT_HAPPY_HOUR_START", 17))
DEFAULT_HAPPY_HOUR_END = int(os.getenv("DEFAULT_HAPPY_HOUR_END", 19))

# Audit Trail Configuration
AUDIT_LOG_CAPACITY = int(os.getenv("AUDIT_LOG_CAPACITY", 1000)) # Oldest entries are evicted first

# Actor used when a request carries no identity
SYSTEM_ACTOR = "system"
