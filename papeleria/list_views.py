"""Views for registering orders and looking them up."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from bson import ObjectId
from flask import current_app, jsonify, request
from pymongo.errors import PyMongoError

from .auth_views import MAILER_EXTENSION
from .database import get_collection
from .mail import build_productos_html, build_utiles_quitados_html, format_date, send_html_email
from .models import Lista
from .numbering import generate_pin, next_numero_lista
from .search import build_search_pipeline

log = logging.getLogger(__name__)

PEDIDOS_COLLECTION = "pedidos"
LISTAS_COLLECTION = "listas"
LOCAL_ZONE = "America/Mexico_City"

_REQUIRED_FIELDS = (
    ("nombre_tutor", "nombreTutor"),
    ("nombre_alumno", "nombreAlumno"),
    ("correo", "correo"),
    ("grado", "grado"),
    ("telefono", "numero"),
)

_CONFIRMATION_TEMPLATE = """
<html>
  <body style="font-family: sans-serif; color: #333;">
    <div style="max-width: 600px; margin: auto; border: 1px solid #ddd; padding: 30px; border-radius: 10px;">
      <h2 style="color: #2196F3;">Confirmación de Pedido: {numero}</h2>
      <p>¡Hola <strong>{tutor}</strong>!</p>
      <p>El pedido para <strong>{alumno}</strong> (Grado: <strong>{grado}</strong>) ha sido registrado exitosamente.</p>

      <p><strong>Detalles del pedido:</strong></p>
      <ul>
        <li><strong>Número de lista:</strong> {numero}</li>
        <li><strong>Fecha de creación:</strong> {creacion}</li>
        <li><strong>Fecha estimada de entrega:</strong> {entrega}</li>
        <li><strong>Etiquetas:</strong> {etiquetas}</li>
      </ul>

      <p><strong>Productos solicitados:</strong></p>
      {productos}

      <p><strong>Útiles quitados:</strong></p>
      {utiles}

      <hr style="margin: 20px 0;" />

      <p><strong>Total a pagar:</strong> ${general:.2f} MXN</p>
      <p><strong>Total pagado:</strong> ${pagado:.2f} MXN</p>
      <p><strong>Total restante:</strong> ${restante:.2f} MXN</p>

      <p style="font-size: 14px; color: #888; margin-top: 30px;">
        Gracias por confiar en nosotros.<br>
        <em>Equipo de Papelería Nina's</em>
      </p>
    </div>
  </body>
</html>
"""


def order_confirmation_html(lista: Lista) -> str:
    """Return the confirmation message sent to the tutor of a new order."""
    return _CONFIRMATION_TEMPLATE.format(
        numero=lista.numero_lista,
        tutor=lista.nombre_tutor,
        alumno=lista.nombre_alumno,
        grado=lista.grado,
        creacion=format_date(lista.fecha_creacion),
        entrega=format_date(lista.fecha_entrega_esperada),
        etiquetas=lista.etiquetas_personaje,
        productos=build_productos_html(lista.productos),
        utiles=build_utiles_quitados_html(lista.utiles_quitados),
        general=lista.total_general,
        pagado=lista.total_pagado,
        restante=lista.total_restante,
    )


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    text = value.strftime("%Y-%m-%dT%H:%M:%S")
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    offset = value.utcoffset()
    if not offset:
        return text + "Z"
    minutes = int(offset.total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{text}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def _jsonable(value: Any) -> Any:
    """Convert stored values (object ids, datetimes) into JSON-ready ones."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return _rfc3339(value)
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def _now_local() -> datetime:
    try:
        zone = ZoneInfo(LOCAL_ZONE)
    except ZoneInfoNotFoundError:
        return datetime.now(timezone.utc)
    return datetime.now(zone)


def _mailer():
    return current_app.extensions.get(MAILER_EXTENSION, send_html_email)


def _error(status: int, message: str, key: str = "error"):
    return jsonify({key: message}), status


def register_list():
    """Store a new order, numbering it, and e-mail the confirmation to the tutor."""
    data = request.get_json(force=True, silent=True)
    try:
        lista = Lista.from_dict(data)
    except ValueError as exc:
        return jsonify({"Error": "Datos inválidos", "Detalle": str(exc)}), 400

    missing = [label for attr, label in _REQUIRED_FIELDS if not getattr(lista, attr)]
    if missing:
        return jsonify({"Error": "Campos obligatorios faltantes", "Campos": missing}), 422

    if lista.fecha_creacion is None:
        lista.fecha_creacion = _now_local()

    lista.estado_lista = "Por preparar"
    lista.pin = generate_pin()

    forrada = lista.lista_forrada
    lista.status_forrado = "Por forrar" if forrada else "No aplica"
    lista.status_etiquetas = "Por hacer" if forrada else "No aplica"
    lista.etiquetas_chicas = forrada
    lista.etiquetas_grandes = forrada
    lista.etiquetas_medianas = forrada

    collection = get_collection(PEDIDOS_COLLECTION)
    try:
        lista.numero_lista = next_numero_lista(collection)
    except (PyMongoError, ValueError):
        return _error(500, "Error generando número de lista", key="Error")

    try:
        collection.insert_one(lista.to_document())
    except PyMongoError:
        return _error(400, "Ocurrio un error, no es posible guardar el documento", key="Error")

    print("Mandamos confirmacion por correo")
    subject = f"Confirmación de pedido {lista.numero_lista}"
    try:
        _mailer()([lista.correo], subject, order_confirmation_html(lista))
    except Exception as exc:  # any delivery failure is reported to the caller
        log.error("Fallo al enviar correo: %s", exc)
        return _error(500, "Fallo al enviar correo", key="Error")

    log.info("Correo enviado exitosamente.")
    return jsonify({"Lista confirmada, correo enviado a": lista.correo}), 200


def get_list():
    """Return the supplies list for the grade given in the "grado" parameter."""
    grado = request.args.get("grado", "")
    if not grado:
        return _error(400, "El parámetro 'lista' es requerido")

    try:
        result = get_collection(LISTAS_COLLECTION).find_one({"grado": grado})
    except PyMongoError as exc:
        return _error(500, str(exc))
    if result is None:
        return _error(404, "No existe esa lista", key="message")

    return jsonify({"lista": _jsonable(result)}), 200


def get_list_with_filters():
    """Search orders by the query parameters, sorted by creation date."""
    params = request.args
    filtered = bool(params)
    pipeline = build_search_pipeline(params)

    if filtered:
        print("Pipeline ejecutado:")
        for stage in pipeline:
            print(json.dumps(_jsonable(stage), indent=2, ensure_ascii=False))

    collection = get_collection(PEDIDOS_COLLECTION)
    try:
        cursor = collection.aggregate(pipeline)
    except PyMongoError as exc:
        if filtered:
            print("Error de Aggregate:", exc)
            return _error(500, str(exc))
        return _error(500, "No se pudo ejecutar el filtro")

    try:
        resultados = [_jsonable(document) for document in cursor]
    except PyMongoError:
        return _error(500, "No se pudieron procesar los resultados")
    finally:
        close = getattr(cursor, "close", None)
        if close is not None:
            close()

    return jsonify({"resultados": resultados}), 200