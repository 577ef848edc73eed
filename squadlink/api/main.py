from fastapi import APIRouter

from squadlink.api.routes import friends, me, users

api_router = APIRouter()
api_router.include_router(users.router)
api_router.include_router(friends.router)
api_router.include_router(me.router)
