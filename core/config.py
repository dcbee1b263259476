import os
import logging
from dotenv import load_dotenv
from botocore.client import Config as BotoConfig
import boto3

# Load .env from project root
try:
    load_dotenv(dotenv_path=os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".env")))
except Exception:
    load_dotenv()

APP_ENV = (os.getenv("APP_ENV") or os.getenv("NODE_ENV") or "development").strip().lower()
IS_PRODUCTION = APP_ENV == "production"
PORT = int(os.getenv("PORT", "8000"))

# Public frontend that hosts the AR viewer pages (/ar/<slug>)
FRONTEND_URL = (os.getenv("FRONTEND_URL", "http://localhost:3000") or "http://localhost:3000").strip().rstrip("/")

# Session cookie / JWT
JWT_SECRET = os.getenv("JWT_SECRET", "").strip()
JWT_TOKEN_NAME = os.getenv("JWT_TOKEN_NAME", "user_token").strip() or "user_token"
JWT_EXPIRES_IN = os.getenv("JWT_EXPIRES_IN", "7d").strip() or "7d"
JWT_ALGORITHM = "HS256"

# Object storage (Cloudflare R2, S3 compatible)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "webar-assets").strip() or "webar-assets"
R2_PUBLIC_URL = (os.getenv("R2_PUBLIC_URL", "") or "").strip().strip('"').strip("'").rstrip("/")

# Slug resolution
SLUG_MAX_ATTEMPTS = int(os.getenv("SLUG_MAX_ATTEMPTS", "1000"))
SLUG_INSERT_RETRIES = int(os.getenv("SLUG_INSERT_RETRIES", "3"))

# Rate limiting (throttled-py). Redis when REDIS_URL is set, in-memory otherwise
RATE_LIMIT_ENABLED = (os.getenv("RATE_LIMIT_ENABLED") or "1").strip() == "1"
REDIS_URL = (os.getenv("REDIS_URL") or "").strip()

# Keep-alive self ping (free-tier hosts sleep idle services)
KEEP_ALIVE_ENABLED = (os.getenv("KEEP_ALIVE_ENABLED") or "0").strip() == "1"
KEEP_ALIVE_URL = (os.getenv("KEEP_ALIVE_URL") or os.getenv("RENDER_EXTERNAL_URL") or f"http://localhost:{PORT}").strip().rstrip("/")
KEEP_ALIVE_INTERVAL_SEC = int(os.getenv("KEEP_ALIVE_INTERVAL_SEC", "840"))

_default_origins = ",".join([
    FRONTEND_URL,
    "http://localhost:3000",
    "http://localhost:5173",
])
ALLOWED_ORIGINS = [o.strip() for o in (os.getenv("ALLOWED_ORIGINS") or _default_origins).split(",") if o.strip()]

# Logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
logger = logging.getLogger("webar")

# Static dir helper (local storage fallback)
STATIC_DIR = os.path.join(os.path.dirname(__file__), "..", "static")
STATIC_DIR = os.path.abspath(os.getenv("STATIC_DIR", "") or STATIC_DIR)

# S3/R2 client for storage operations
s3_client = None

if R2_ACCOUNT_ID and R2_ACCESS_KEY_ID and R2_SECRET_ACCESS_KEY:
    s3_client = boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=BotoConfig(signature_version="s3v4"),
        region_name="auto",
    )
    logger.info(f"R2 storage client initialized for bucket {R2_BUCKET_NAME}")
else:
    logger.warning("R2 credentials not set - uploads will be stored locally")

# Public base URL for stored objects
if R2_PUBLIC_URL:
    STORAGE_PUBLIC_URL = R2_PUBLIC_URL
elif s3_client is not None:
    STORAGE_PUBLIC_URL = f"https://{R2_BUCKET_NAME}.{R2_ACCOUNT_ID}.r2.cloudflarestorage.com"
else:
    STORAGE_PUBLIC_URL = "/static"
