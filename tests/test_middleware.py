import time

import jwt
from flask import Flask, g, jsonify

from papeleria.middleware import auth_required, roles_required
from papeleria.tokens import generate_jwt

SECRET = "secret"


def _claims_view():
    return jsonify(rol=g.rol, userId=g.user_id)


def _ok_view():
    return jsonify(ok=True)


def _client(view):
    app = Flask(__name__)
    app.config["JWT_SECRET"] = SECRET
    app.add_url_rule("/", endpoint="view", view_func=view)
    return app.test_client()


def _bearer(value):
    return {"Authorization": "Bearer " + value}


def test_missing_header_is_rejected():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    response = client.get("/")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Token no proporcionado"}


def test_non_bearer_scheme_is_rejected():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    response = client.get("/", headers={"Authorization": "Basic token"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Token no proporcionado"}


def test_garbage_token_is_invalid():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    response = client.get("/", headers={"Authorization": "Bearer token"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Token inválido"}


def test_token_signed_with_other_key_is_invalid():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    signed = generate_jwt("u1", "admin", "placeholder")
    response = client.get("/", headers=_bearer(signed))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Token inválido"}


def test_expired_token_is_invalid():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    expired = jwt.encode(
        {"userId": "u1", "rol": "admin", "exp": int(time.time()) - 60},
        SECRET,
        algorithm="HS256",
    )
    response = client.get("/", headers=_bearer(expired))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Token inválido"}


def test_allowed_role_passes_with_claims():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    signed = generate_jwt("abc123", "develop", SECRET)
    response = client.get("/", headers=_bearer(signed))
    assert response.status_code == 200
    assert response.get_json() == {"rol": "develop", "userId": "abc123"}


def test_other_role_is_denied():
    client = _client(auth_required(roles_required("admin", "develop")(_claims_view)))
    signed = generate_jwt("abc123", "worker", SECRET)
    response = client.get("/", headers=_bearer(signed))
    assert response.status_code == 403
    assert response.get_json() == {"error": "Acceso denegado"}


def test_role_check_without_authentication_has_no_role():
    client = _client(roles_required("admin")(_ok_view))
    response = client.get("/")
    assert response.status_code == 403
    assert response.get_json() == {"error": "Sin rol"}