import logging
from dataclasses import dataclass
from jose import jwt, JWTError
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config import settings
from app.exceptions import Unauthenticated

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Identity:
    uid: str
    email: str = ""
    display_name: str = ""
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )

    to_encode.update({"exp": expire})
    if settings.TOKEN_AUDIENCE:
        to_encode.setdefault("aud", settings.TOKEN_AUDIENCE)
    if settings.TOKEN_ISSUER:
        to_encode.setdefault("iss", settings.TOKEN_ISSUER)

    encoded_jwt = jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )
    return encoded_jwt


def token_for(uid: str, email: str = "", display_name: str = "", role: str = USER_ROLE,
              expires_delta: Optional[timedelta] = None):
    return create_access_token(
        {"sub": uid, "email": email, "name": display_name, "role": role},
        expires_delta=expires_delta,
    )


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.TOKEN_AUDIENCE,
            issuer=settings.TOKEN_ISSUER,
            options={"verify_aud": settings.TOKEN_AUDIENCE is not None},
        )
        return payload
    except JWTError:
        return None


def verify_token(token: Optional[str]) -> Identity:
    """
    Verify a bearer token issued by the identity provider.

    The role is read from the signed ``role`` claim only; anything a client
    sends in a request body is ignored.
    """
    if not token:
        raise Unauthenticated("Missing bearer token")

    payload = decode_access_token(token)
    if payload is None:
        logger.warning("Rejected bearer token: signature, expiry or format invalid")
        raise Unauthenticated()

    uid = payload.get("uid") or payload.get("sub")
    if not uid:
        raise Unauthenticated("Invalid token payload")

    role = ADMIN_ROLE if payload.get("role") == ADMIN_ROLE else USER_ROLE

    return Identity(
        uid=str(uid),
        email=payload.get("email") or "",
        display_name=payload.get("name") or "",
        role=role,
    )


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise Unauthenticated("Missing bearer token")
    return verify_token(credentials.credentials)
