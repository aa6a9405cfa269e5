"""API route handlers."""

from .candidates import router as candidates_router
from .swipes import router as swipes_router
from .super_likes import router as super_likes_router
from .matches import router as matches_router
from .usage import router as usage_router
