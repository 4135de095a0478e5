"""
API Router.

Combines all API endpoints under the configured API prefix.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, categories, posts, users

router = APIRouter()

# Include endpoint routers
router.include_router(auth.router, prefix="/auth", tags=["Auth"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(posts.router, prefix="/posts", tags=["Posts"])
router.include_router(categories.router, prefix="/categories", tags=["Categories"])
