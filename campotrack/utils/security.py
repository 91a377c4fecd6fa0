from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import jwt, JWTError
from passlib.context import CryptContext
from fastapi.security import HTTPBearer

from campotrack.config.settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
bearer_scheme = HTTPBearer(auto_error=False)

ACCESS = "access"
REFRESH = "refresh"


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)


def _secret_for(token_type: str) -> str:
    return settings.REFRESH_SECRET_KEY if token_type == REFRESH else settings.SECRET_KEY


def _create_token(claims: dict, token_type: str, expires_minutes: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode = {**claims, "type": token_type, "exp": expire}
    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.ALGORITHM)


def token_claims(id_usuario: int, nombre_usuario: str, rol: str) -> dict:
    """Claims que viajan en ambos tokens: {sub, nombre_usuario, rol}."""
    return {"sub": str(id_usuario), "nombre_usuario": nombre_usuario, "rol": rol}


def create_access_token(claims: dict, expires_minutes: int | None = None) -> str:
    return _create_token(claims, ACCESS, expires_minutes or settings.ACCESS_TOKEN_EXPIRE_MINUTES)


def create_refresh_token(claims: dict, expires_minutes: int | None = None) -> str:
    return _create_token(claims, REFRESH, expires_minutes or settings.REFRESH_TOKEN_EXPIRE_MINUTES)


def _decode(token: str, token_type: str) -> Optional[dict]:
    try:
        payload = jwt.decode(token, _secret_for(token_type), algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
    if payload.get("type") != token_type or "sub" not in payload:
        return None
    return payload


def decode_access_token(token: str) -> Optional[dict]:
    return _decode(token, ACCESS)


def decode_refresh_token(token: str) -> Optional[dict]:
    return _decode(token, REFRESH)
