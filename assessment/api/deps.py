from fastapi import HTTPException, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import uuid
import logging

from assessment.db.database import get_db
from assessment.core.security import verify_access_token
from assessment.services.attempt_service import AttemptGradingEngine, AttemptService

logger = logging.getLogger(__name__)

# Security scheme for Swagger UI
security = HTTPBearer()

# =====================================================
# Get Current user
# =====================================================
async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> uuid.UUID:
    """
    Dependency that validates the JWT and returns the user id it carries.

    Raises:
        HTTPException 401: If token is invalid or missing
    """
    subject = verify_access_token(credentials.credentials)

    try:
        return uuid.UUID(subject)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"}
        )

# =====================================================
# Services
# =====================================================
def get_grading_engine(request: Request) -> AttemptGradingEngine:
    """Engine built once in the application lifespan."""
    return request.app.state.grading_engine


def get_attempt_service(db: AsyncSession = Depends(get_db)) -> AttemptService:
    return AttemptService(db)
