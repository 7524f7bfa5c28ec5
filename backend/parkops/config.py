# backend/parkops/config.py
import os

from dotenv import load_dotenv

# .env is optional; real environment variables always win
load_dotenv(override=False)

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql+psycopg://parkops:devpass@db:5432/parkops",
)

FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:8081")

JWT_SECRET = os.getenv("JWT_SECRET", "parkops-dev-secret-change-me-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))

EXPO_PUSH_URL = os.getenv("EXPO_PUSH_URL", "https://exp.host/--/api/v2/push/send")
EXPO_PUSH_TIMEOUT = float(os.getenv("EXPO_PUSH_TIMEOUT", "10"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
