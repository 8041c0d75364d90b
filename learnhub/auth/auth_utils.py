# learnhub/auth/auth_utils.py
from typing import Optional

from fastapi import Header, HTTPException
from jose import jwt, JWTError

from learnhub import config


def _decode_session_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            config.CLERK_JWT_KEY,
            algorithms=[config.CLERK_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid or Expired Token")


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


def verify_bearer_token(authorization: str = Header(None)) -> dict:
    token = extract_bearer(authorization)
    if token is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    # Decodes and checks expiration/signature
    return _decode_session_token(token)


def verify_optional_bearer_token(authorization: Optional[str]) -> Optional[dict]:
    """Decode a bearer header when present; None when the header is absent"""
    token = extract_bearer(authorization)
    if token is None:
        return None
    return _decode_session_token(token)
