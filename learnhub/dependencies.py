from fastapi import Depends, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from learnhub.ai.services import AIService
from learnhub.auth.auth_utils import verify_bearer_token
from learnhub.auth.identity_client import IdentityClient

# ==================== DEPENDENCY FUNCTIONS ====================


async def get_db(request: Request) -> AsyncIOMotorDatabase:
    """Database dependency"""
    return request.app.state.db


async def get_identity_client(request: Request) -> IdentityClient:
    return request.app.state.identity_client


async def get_ai_service(request: Request) -> AIService:
    return request.app.state.ai_service


async def get_current_user_id(claims: dict = Depends(verify_bearer_token)) -> str:
    """Caller identity is the verified token subject, never a payload field"""
    user_id = claims.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return user_id
