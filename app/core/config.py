import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/cafe_pos_db")

# Application Metadata
PROJECT_NAME = "Cafe POS Ledger"
VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Reporting
# Calendar days in daily/monthly reports are cut in this IANA timezone
REPORT_TIMEZONE = os.getenv("REPORT_TIMEZONE", "UTC")
TOP_PRODUCTS_LIMIT = int(os.getenv("TOP_PRODUCTS_LIMIT", 10))
