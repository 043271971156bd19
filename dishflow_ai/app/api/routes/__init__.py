from fastapi import APIRouter

from dishflow_ai.app.api.routes import extraction, recipes, thermomix

api_router = APIRouter()
api_router.include_router(extraction.router)
api_router.include_router(recipes.router)
api_router.include_router(thermomix.router)
