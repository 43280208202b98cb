from app.routers.auth import router as auth_router
from app.routers.users import router as users_router
from app.routers.interviews import router as interviews_router
from app.routers.webhook import router as webhook_router
from app.routers.community import router as community_router

__all__ = ["auth_router", "users_router", "interviews_router", "webhook_router", "community_router"]
