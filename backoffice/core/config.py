import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/backoffice_db")

# Application Metadata
PROJECT_NAME = os.getenv("PROJECT_NAME", "Restaurant Back-Office")
VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Menu pricing display
CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "€")

# Emit inventory.low_stock_alert.v1 events when a movement leaves an item below par
LOW_STOCK_ALERTS = os.getenv("LOW_STOCK_ALERTS", "true").lower() in ("1", "true", "yes")

# Outbox Poller Configuration
POLLING_INTERVAL = int(os.getenv("POLLING_INTERVAL", 1)) # Poller checks for new events every N seconds
MAX_ATTEMPTS = int(os.getenv("MAX_ATTEMPTS", 5)) # Max retries for an event
BATCH_SIZE = int(os.getenv("BATCH_SIZE", 50)) # How many events to fetch per poll

# Menu stock alerts flag ingredients that cover fewer servings than this
MENU_ALERT_SERVINGS = int(os.getenv("MENU_ALERT_SERVINGS", 10))
