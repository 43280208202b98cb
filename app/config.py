import os
from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./mockwise.db")

# JWT
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours
REFRESH_TOKEN_EXPIRE_DAYS = 7

# Session-presence cookie read by the route guard
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "session")

# Voice platform (Vapi)
VAPI_PUBLIC_KEY = os.getenv("VAPI_PUBLIC_KEY", "")
VAPI_ASSISTANT_ID = os.getenv("VAPI_ASSISTANT_ID", "")
VAPI_WEBHOOK_SECRET = os.getenv("VAPI_WEBHOOK_SECRET", "")
EVALUATION_FUNCTION_NAME = os.getenv("EVALUATION_FUNCTION_NAME", "evaluate_interview")

# Community insights
COMMUNITY_SAMPLE_SIZE = int(os.getenv("COMMUNITY_SAMPLE_SIZE", "100"))
NEWS_FEED_URL = os.getenv(
    "NEWS_FEED_URL",
    "https://hn.algolia.com/api/v1/search_by_date?tags=story&query=software+ai+coding+system&hitsPerPage=3",
)

# Frontend URL for CORS and redirects
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
