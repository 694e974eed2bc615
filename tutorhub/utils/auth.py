# tutorhub/utils/auth.py
# -*- coding: utf-8 -*-
"""
Xác thực Bearer JWT cho các route cần đăng nhập.

require_auth gắn g.account_id (ObjectId) và g.account_role vào request,
require_role chặn theo role (đặt sau require_auth).
"""
import datetime
from functools import wraps

import jwt
from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app, g, request

from tutorhub.utils.errors import BadRequestError, ForbiddenError, UnauthorizedError


def decode_jwt_strict(token: str) -> dict:
    """
    Decode JWT token và trả về payload.

    Raises:
        jwt.ExpiredSignatureError: Token đã hết hạn
        jwt.InvalidTokenError: Token không hợp lệ
    """
    decode_kwargs = {
        'key': current_app.config["JWT_KEY"],
        'algorithms': ['HS256'],
    }
    audience = current_app.config.get("JWT_AUDIENCE")
    issuer = current_app.config.get("JWT_ISSUER")
    if audience:
        decode_kwargs['audience'] = audience
    else:
        decode_kwargs['options'] = {"verify_aud": False}
    if issuer:
        decode_kwargs['issuer'] = issuer

    return jwt.decode(token, **decode_kwargs)


def generate_jwt(account_id, role: str, expires_minutes: int = None) -> str:
    now_utc = datetime.datetime.now(datetime.timezone.utc)
    if expires_minutes is None:
        expires_minutes = current_app.config.get("JWT_EXPIRES_MINUTES", 120)

    payload = {
        'sub': str(account_id),
        'role': role,
        'iat': now_utc,
        'exp': now_utc + datetime.timedelta(minutes=expires_minutes),
    }
    # Chỉ thêm iss/aud nếu có cấu hình
    if current_app.config.get("JWT_ISSUER"):
        payload['iss'] = current_app.config["JWT_ISSUER"]
    if current_app.config.get("JWT_AUDIENCE"):
        payload['aud'] = current_app.config["JWT_AUDIENCE"]

    return jwt.encode(payload, current_app.config["JWT_KEY"], algorithm='HS256')


def _load_identity():
    header = request.headers.get("Authorization", "").strip()
    if not header:
        raise ForbiddenError("No token provided!")

    parts = header.split(" ")
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise BadRequestError("Invalid token format. Use 'Bearer <token>'")

    try:
        payload = decode_jwt_strict(parts[1])
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Unauthorized! Token expired")
    except jwt.InvalidTokenError as ex:
        raise UnauthorizedError(f"Unauthorized! {ex}")

    raw_id = payload.get("sub") or payload.get("id")
    role = payload.get("role")
    if not raw_id or not role:
        raise UnauthorizedError("Invalid token payload: missing id or role")

    try:
        account_id = ObjectId(str(raw_id))
    except (InvalidId, TypeError):
        raise UnauthorizedError("Invalid token payload: malformed id")

    return account_id, role


def require_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        g.account_id, g.account_role = _load_identity()
        return view(*args, **kwargs)
    return wrapper


def require_role(role: str):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if getattr(g, "account_role", None) != role:
                raise ForbiddenError(f"Access denied. {role} role required.")
            return view(*args, **kwargs)
        return wrapper
    return decorator
