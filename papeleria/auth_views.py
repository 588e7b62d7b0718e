"""Views for registering users and logging in."""

from __future__ import annotations

import logging
import threading

from flask import current_app, jsonify, request
from pymongo.errors import PyMongoError

from .database import get_collection
from .hashing import check_password_hash, hash_password
from .mail import send_html_email
from .middleware import _jwt_secret
from .models import User
from .tokens import generate_jwt

log = logging.getLogger(__name__)

MAILER_EXTENSION = "papeleria.mailer"
ALLOWED_ROLES = frozenset({"worker", "admin", "develop"})
WELCOME_SUBJECT = "🎒 Bienvenido a la plataforma de papelería Nina's"
USERS_COLLECTION = "usuarios"

_WELCOME_TEMPLATE = """
<html>
  <body style="font-family: sans-serif; color: #333;">
    <div style="max-width: 600px; margin: auto; border: 1px solid #ddd; padding: 30px; border-radius: 10px;">
      <h2 style="color: #4CAF50;">¡Bienvenido al equipo, {nombre}! 🎉</h2>
      <p style="font-size: 16px;">
        ¿Estás listo para una nueva temporada de <strong>papelería</strong>?<br><br>
        Estamos muy emocionados de tenerte con nosotros.
      </p>
      <p style="font-size: 16px; margin-top: 30px;">
        <strong>Tu contraseña para acceder a la plataforma es:</strong>
      </p>
      <div style="background-color: #f2f2f2; padding: 15px; border-radius: 8px; font-size: 18px; font-weight: bold; text-align: center;">
        {password}
      </div>
      <p style="font-size: 14px;">¡Mucho éxito!<br>El equipo de Papelería</p>
    </div>
  </body>
</html>
"""


def welcome_email_html(nombre: str, password: str) -> str:
    """Return the welcome message sent to a newly registered user."""
    return _WELCOME_TEMPLATE.format(nombre=nombre, password=password)


def _mailer():
    return current_app.extensions.get(MAILER_EXTENSION, send_html_email)


def _error(status: int, message: str):
    return jsonify({"error": message}), status


def _read_json(names: tuple[str, ...]) -> dict[str, str]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValueError("body must be a JSON object")
    values = {}
    for name in names:
        value = data.get(name)
        if value is None:
            value = ""
        elif not isinstance(value, str):
            raise ValueError(f"{name} must be a string")
        values[name] = value
    return values


def _send_welcome(mailer, email: str, html: str) -> None:
    try:
        mailer([email], WELCOME_SUBJECT, html)
    except Exception as exc:  # delivery runs in the background; failures are only logged
        log.error("Error al enviar correo de bienvenida a %s: %s", email, exc)


def register():
    """Create a user account and send the welcome e-mail."""
    try:
        data = _read_json(("nombre", "email", "password", "rol"))
    except ValueError:
        return _error(400, "Datos inválidos")

    if data["rol"] not in ALLOWED_ROLES:
        return _error(400, "Rol inválido")

    collection = get_collection(USERS_COLLECTION)
    try:
        existing = collection.find_one({"email": data["email"]})
    except PyMongoError:
        existing = None
    if existing is not None:
        return _error(409, "El usuario ya existe")

    try:
        hashed = hash_password(data["password"])
    except ValueError:
        hashed = ""

    user = User(nombre=data["nombre"], email=data["email"], password=hashed, rol=data["rol"])
    try:
        collection.insert_one(user.to_document())
    except PyMongoError:
        return _error(500, "No se pudo crear el usuario")

    html = welcome_email_html(data["nombre"], data["password"])
    threading.Thread(
        target=_send_welcome, args=(_mailer(), data["email"], html), daemon=True
    ).start()

    return jsonify({"mensaje": "Usuario registrado correctamente"}), 201


def login():
    """Check credentials and return a session token with the user's details."""
    try:
        data = _read_json(("email", "password"))
    except ValueError:
        return _error(400, "Datos inválidos")

    try:
        document = get_collection(USERS_COLLECTION).find_one({"email": data["email"]})
    except PyMongoError:
        document = None
    if document is None:
        return _error(401, "Credenciales incorrectas")

    user = User.from_document(document)
    if not check_password_hash(data["password"], user.password):
        return _error(401, "Credenciales incorrectas")

    user_id = user.to_json()["id"]
    try:
        token = generate_jwt(user_id, user.rol, _jwt_secret())
    except ValueError:
        return _error(500, "No se pudo generar el token")

    return jsonify({"token": token, "userId": user_id, "rol": user.rol, "name": user.nombre})