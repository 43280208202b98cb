import logging
from contextlib import asynccontextmanager
from datetime import datetime
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from app.config import FRONTEND_URL, LOG_LEVEL

load_dotenv()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

from app.database import init_db
from app.middleware import route_guard
from app.routers import (
    auth_router,
    users_router,
    interviews_router,
    webhook_router,
    community_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("MockWise API starting up...")
    init_db()
    yield
    logger.info("MockWise API shutting down...")


app = FastAPI(title="MockWise API", lifespan=lifespan)

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(interviews_router)
app.include_router(webhook_router)
app.include_router(community_router)


def _strip_trailing_slash(value: str) -> str:
    return value[:-1] if value.endswith("/") else value


allowed_origins = [
    _strip_trailing_slash(FRONTEND_URL),
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# Route guard runs inside CORS so redirects still carry CORS headers
app.middleware("http")(route_guard)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "MockWise API is running"}


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("backend:app", host="0.0.0.0", port=8000, reload=True)
