import os
from dotenv import load_dotenv

load_dotenv()  # Carga las variables de entorno

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./finance.db")
DB_ECHO = os.getenv("DB_ECHO", "false").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "MYR")
