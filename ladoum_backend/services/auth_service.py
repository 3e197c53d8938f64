"""
Authentication service
Resolves the acting user from a Firebase ID token or a farm API key
"""

from typing import Optional
from fastapi import HTTPException, Request
from .. import config
from .firebase_auth import verify_bearer_id_token


def authenticate_user(request: Request, x_user_key: Optional[str] = None) -> str:
    """
    Return the id recorded as created_by for writes.
    Firebase uid when a bearer token verifies, else the API key when it is
    one of VALID_KEYS. Raises 401 otherwise.
    """
    decoded = verify_bearer_id_token(request.headers.get('Authorization'))
    user_id = decoded.get('uid') if decoded else None
    if user_id:
        return user_id

    if x_user_key and x_user_key in config.VALID_KEYS:
        return x_user_key

    raise HTTPException(status_code=401, detail="Unauthorized")
