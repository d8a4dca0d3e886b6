import os

# Database Configuration
# Uses default credentials for local Docker Compose setup
DB_URL = os.getenv("DATABASE_URL", "postgres://user:password@db:5432/restaurant_db")

# Application Metadata
PROJECT_NAME = "Restaurant Order & Inventory Service"
VERSION = "1.0.0"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Ingredient quantities are fixed point; every requirement is quantized to this many places
STOCK_DECIMAL_PLACES = int(os.getenv("STOCK_DECIMAL_PLACES", 3))
