from fastapi import APIRouter

from app.api.v1.endpoints import auth, matches, users

router = APIRouter()

router.include_router(auth.router, prefix="/auth")
router.include_router(users.router, prefix="/users")
router.include_router(matches.router, prefix="/matches")
