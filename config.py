import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
BASE_DIR = Path(__file__).parent
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
SKIP_CORRUPT_ARTICLES = os.getenv("SKIP_CORRUPT_ARTICLES", "").lower() in ("1", "true", "yes")

# Site metadata
SITE_TITLE = os.getenv("SITE_TITLE", "Personal Blog")
SITE_DESCRIPTION = os.getenv("SITE_DESCRIPTION", "Notes and articles")

# Auth / session
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ADMIN_USER = os.getenv("ADMIN_USER", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "changeme")
ADMIN_COOKIE_NAME = os.getenv("ADMIN_COOKIE_NAME", "admin_session")
ADMIN_COOKIE_MAX_AGE = int(os.getenv("ADMIN_COOKIE_MAX_AGE", 24 * 3600))
TOKEN_LENGTH = int(os.getenv("TOKEN_LENGTH", 32))

# Server
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", 8080))
