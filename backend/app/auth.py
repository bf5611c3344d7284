from fastapi import HTTPException, Request
from jose import JWTError, jwt
import os
import logging

logger = logging.getLogger("app.auth")


def _jwt_secret() -> str:
    return str(os.getenv("SUPABASE_JWT_SECRET") or "").strip()


def _environment() -> str:
    return str(os.getenv("ENV", "development")).strip().lower()


def _allow_unverified_dev() -> bool:
    return str(os.getenv("ALLOW_UNVERIFIED_JWT_DEV", "false")).strip().lower() in {"1", "true", "yes", "on"}


def _resolve_payload_from_token(token: str) -> dict:
    secret = _jwt_secret()
    if secret:
        try:
            return jwt.decode(token, secret, algorithms=["HS256"], options={"verify_aud": False})
        except JWTError:
            raise HTTPException(401, "Invalid token")

    if _environment() == "production":
        raise HTTPException(500, "SUPABASE_JWT_SECRET is not configured")
    if not _allow_unverified_dev():
        raise HTTPException(
            401,
            "Token verification unavailable in development; configure SUPABASE_JWT_SECRET or set ALLOW_UNVERIFIED_JWT_DEV=true",
        )
    try:
        payload = jwt.get_unverified_claims(token)
    except JWTError:
        raise HTTPException(401, "Invalid token")
    logger.warning("ALLOW_UNVERIFIED_JWT_DEV enabled; using unverified token claims in non-production mode")
    return payload


def resolve_user_id_from_token(token: str) -> str:
    payload = _resolve_payload_from_token(token)
    user_id = (payload or {}).get("sub")
    if not user_id:
        raise HTTPException(401, "Invalid token")
    return str(user_id)


def bearer_token(header_value: str | None) -> str:
    auth = str(header_value or "").strip()
    if not auth.lower().startswith("bearer "):
        return ""
    return auth[len("bearer "):].strip()


def get_user_id(request: Request) -> str:
    token = bearer_token(request.headers.get("Authorization"))
    if not token:
        raise HTTPException(401, "Unauthorized")
    return resolve_user_id_from_token(token)
