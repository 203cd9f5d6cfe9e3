import os


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./consignment.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in {"1", "true", "yes"}
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(",")
    if origin.strip()
]
CREATE_TABLES = os.getenv("CREATE_TABLES", "true").lower() in {"1", "true", "yes"}
