from fastapi import APIRouter
from assessment.api.v1.endpoints import attempts

# ============================================================
# Main API v1 Router
# ============================================================

api_router = APIRouter()

api_router.include_router(
    attempts.router,
    prefix=""  # Routes define their own prefixes (/quizzes/{id}/..., /attempts/{id})
)
