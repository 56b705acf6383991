from fastapi import APIRouter

from interview_practice.api.routes.practice import router as practice_router

api_router = APIRouter()
api_router.include_router(practice_router)
