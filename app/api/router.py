from fastapi import APIRouter

from app.api.routes import characters, games

api_router = APIRouter()
api_router.include_router(characters.router)
api_router.include_router(games.router)
