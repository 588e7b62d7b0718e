"""Connection to the MongoDB database that holds users and orders."""

from __future__ import annotations

from typing import Any

from flask import current_app, has_app_context
from pymongo import MongoClient
from pymongo.errors import PyMongoError

DATABASE_NAME = "papeleria"
DATABASE_EXTENSION = "papeleria.database"
_TIMEOUT_MS = 10_000

_state: dict[str, Any] = {"database": None}


def connect_db(uri: str):
    """Connect to MongoDB, check the server answers, and return the database."""
    if not uri:
        raise RuntimeError("MONGO_URI no definido en .env")
    try:
        client = MongoClient(
            uri,
            serverSelectionTimeoutMS=_TIMEOUT_MS,
            connectTimeoutMS=_TIMEOUT_MS,
        )
    except PyMongoError as exc:
        raise RuntimeError(f"Error conectando a MongoDB Atlas: {exc}") from exc
    try:
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        raise RuntimeError(f"No se pudo hacer ping a MongoDB: {exc}") from exc
    database = client[DATABASE_NAME]
    _state["database"] = database
    print("✅ Conectado a MongoDB Atlas")
    return database


def get_collection(name: str):
    """Return a collection from the current application's database, or the connected one."""
    database = None
    if has_app_context():
        database = current_app.extensions.get(DATABASE_EXTENSION)
    if database is None:
        database = _state["database"]
    if database is None:
        raise RuntimeError("database not connected")
    return database[name]