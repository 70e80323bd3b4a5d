from fastapi import Request, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from starlette.middleware.base import BaseHTTPMiddleware
from jose import jwt
from typing import Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


class SecurityMiddleware(BaseHTTPMiddleware):
    PUBLIC_EXACT_PATHS = {"/"}
    PUBLIC_PATH_PREFIXES = (
        "/docs",
        "/redoc",
        "/openapi.json",
        "/api/v1/health",
    )

    def is_public(self, path: str) -> bool:
        return path in self.PUBLIC_EXACT_PATHS or path.startswith(self.PUBLIC_PATH_PREFIXES)

    async def dispatch(self, request: Request, call_next):
        if self.is_public(request.url.path):
            return await call_next(request)

        credentials: Optional[HTTPAuthorizationCredentials] = await security(request)
        if not credentials:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing authentication token",
            )

        try:
            payload = self._verify_jwt_token(credentials.credentials)
        except jwt.ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
            )
        except jwt.JWTError as e:
            logger.warning(f"Invalid token: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication token",
            )

        request.state.user_id = payload.get("sub")
        request.state.user_email = payload.get("email")

        return await call_next(request)

    def _verify_jwt_token(self, token: str) -> dict:
        return jwt.decode(
            token,
            settings.JWT_KEY,
            algorithms=[settings.ALGORITHM],
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
        )
