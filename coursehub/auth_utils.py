# coursehub/auth_utils.py
from jose import jwt, JWTError
from fastapi import Header
from coursehub import config
from coursehub.errors import Unauthenticated


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except JWTError:
        raise Unauthenticated("Invalid or Expired Token")


def verify_token(authorization: str = Header(None)) -> dict:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthenticated("Unauthorized")

    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthenticated("Unauthorized")

    # Decodes and checks expiration/signature
    return decode_token(token)
