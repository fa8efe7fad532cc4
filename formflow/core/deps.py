import uuid

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from formflow.core.config import settings
from formflow.core.security import decode_jwt

bearer = HTTPBearer(auto_error=False)

def get_current_user(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Token de autenticação ausente")
    try:
        claims = decode_jwt(creds.credentials, settings.AUTH_JWT_SECRET)
    except Exception:
        raise HTTPException(status_code=401, detail="Token inválido")
    try:
        claims["user_id"] = uuid.UUID(str(claims.get("sub") or ""))
    except ValueError:
        raise HTTPException(status_code=401, detail="Token inválido")
    return claims

def get_current_user_id(user: dict = Depends(get_current_user)) -> uuid.UUID:
    return user["user_id"]
