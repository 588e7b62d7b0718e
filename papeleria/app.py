"""The web application: routes, CORS headers and the command that starts the server."""

from __future__ import annotations

import argparse
import logging
import os

from dotenv import load_dotenv
from flask import Flask, g, jsonify, request

from .auth_views import MAILER_EXTENSION, login, register
from .database import DATABASE_EXTENSION, connect_db
from .list_views import get_list, get_list_with_filters, register_list
from .middleware import auth_required, roles_required

log = logging.getLogger(__name__)

DEFAULT_PORT = 8080
_CORS_METHODS = "GET,POST,PUT,DELETE"
_CORS_HEADERS = "Origin,Content-Type,Authorization"
_CORS_EXPOSE = "Content-Length"
_CORS_MAX_AGE = str(12 * 3600)


def protected():
    """Greet an authenticated administrator or developer."""
    return jsonify({
        "mensaje": "Bienvenido a la ruta protegida",
        "rol": g.get("rol"),
        "userId": g.get("user_id"),
    })


def _guarded(view, *roles):
    return auth_required(roles_required(*roles)(view))


def _cross_origin() -> str | None:
    origin = request.headers.get("Origin", "")
    if not origin or origin in (f"http://{request.host}", f"https://{request.host}"):
        return None
    return origin


def _cors_preflight():
    if request.method != "OPTIONS" or _cross_origin() is None:
        return None
    return "", 204, {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": _CORS_METHODS,
        "Access-Control-Allow-Headers": _CORS_HEADERS,
        "Access-Control-Max-Age": _CORS_MAX_AGE,
    }


def _cors_headers(response):
    if request.method != "OPTIONS" and _cross_origin() is not None:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Expose-Headers"] = _CORS_EXPOSE
    return response


def create_app(database=None, mailer=None, jwt_secret=None) -> Flask:
    """Build the application around a database, an optional mailer and a signing secret."""
    app = Flask(__name__)
    if database is not None:
        app.extensions[DATABASE_EXTENSION] = database
    if mailer is not None:
        app.extensions[MAILER_EXTENSION] = mailer
    if jwt_secret is not None:
        app.config["JWT_SECRET"] = jwt_secret

    app.before_request(_cors_preflight)
    app.after_request(_cors_headers)

    app.add_url_rule("/api/login", view_func=login, methods=["POST"])
    app.add_url_rule("/api/listas", view_func=get_list, methods=["GET"])
    app.add_url_rule(
        "/api/protegida", view_func=_guarded(protected, "admin", "develop"), methods=["GET"]
    )
    app.add_url_rule(
        "/api/registrolista",
        view_func=_guarded(register_list, "admin", "develop", "worker"),
        methods=["POST"],
    )
    app.add_url_rule("/api/register", view_func=_guarded(register, "develop"), methods=["POST"])
    app.add_url_rule(
        "/api/getlist",
        view_func=_guarded(get_list_with_filters, "admin", "worker", "develop"),
        methods=["GET"],
    )
    return app


def main(argv=None) -> int:
    """Load settings, connect to the database and serve the API."""
    parser = argparse.ArgumentParser(prog="papeleria", description="Serve the stationery orders API.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    if os.environ.get("ENV") != "production" and not load_dotenv():
        log.info("No se cargó el archivo .env")

    try:
        database = connect_db(os.environ.get("MONGO_URI", ""))
    except RuntimeError as exc:
        log.critical("%s", exc)
        return 1

    app = create_app(database, None, os.environ.get("JWT_SECRET", ""))
    log.info("🚀 Servidor corriendo en http://localhost:%d", args.port)
    app.run(host=args.host, port=args.port)
    return 0