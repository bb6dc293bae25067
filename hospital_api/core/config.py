# Configuration settings for the Hospital Management API
import os

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Database Configuration
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./hospital.db")

# JWT Configuration
JWT_SECRET = os.getenv("JWT_SECRET", "hospital-secret-key")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", str(30 * 24 * 60)))

# Password hashing cost
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# API Configuration
API_TITLE = "Hospital Management System API"
API_VERSION = "1.0.0"
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "5000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Background jobs
SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "true")
LOW_STOCK_CHECK_MINUTES = int(os.getenv("LOW_STOCK_CHECK_MINUTES", "60"))

# Inventory: raise instead of clamping when a manual subtract exceeds stock
STRICT_STOCK_SUBTRACT = _flag("STRICT_STOCK_SUBTRACT", "false")

# Billing
BILL_NUMBER_RETRIES = int(os.getenv("BILL_NUMBER_RETRIES", "5"))
BILL_DUE_DAYS = int(os.getenv("BILL_DUE_DAYS", "7"))

SEED_DEMO_DATA = _flag("SEED_DEMO_DATA", "false")
