"""Request guards: bearer-token authentication and role checks."""

from __future__ import annotations

import functools
import os

import jwt
from flask import current_app, g, jsonify, request

from .tokens import decode_jwt

_BEARER = "Bearer "


def _jwt_secret() -> str:
    secret = current_app.config.get("JWT_SECRET")
    if secret is None:
        secret = os.environ.get("JWT_SECRET", "")
    return secret


def _deny(status: int, message: str):
    return jsonify({"error": message}), status


def auth_required(view):
    """Reject requests without a valid bearer token; expose its userId and rol on g."""

    @functools.wraps(view)
    def wrapper(*args, **kwargs):
        header = request.headers.get("Authorization", "")
        if not header.startswith(_BEARER):
            return _deny(401, "Token no proporcionado")
        try:
            claims = decode_jwt(header[len(_BEARER):], _jwt_secret())
        except jwt.InvalidTokenError:
            return _deny(401, "Token inválido")
        g.user_id = claims.get("userId")
        g.rol = claims.get("rol")
        return view(*args, **kwargs)

    return wrapper


def roles_required(*args):
    """Allow the request only when the authenticated role is one of the given ones."""
    allowed = args

    def decorator(view):
        @functools.wraps(view)
        def wrapper(*view_args, **view_kwargs):
            if "rol" not in g:
                return _deny(403, "Sin rol")
            if g.rol in allowed:
                return view(*view_args, **view_kwargs)
            return _deny(403, "Acceso denegado")

        return wrapper

    return decorator