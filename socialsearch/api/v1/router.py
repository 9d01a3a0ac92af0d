from fastapi import APIRouter

from socialsearch.api.v1.history import router as history_router
from socialsearch.api.v1.saved import router as saved_router
from socialsearch.api.v1.search import router as search_router

api_router = APIRouter()
api_router.include_router(history_router)
api_router.include_router(saved_router)
api_router.include_router(search_router)
