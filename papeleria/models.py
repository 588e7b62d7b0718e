"""Documents stored by the service: orders (listas), their parts, and users."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

_RFC3339 = re.compile(
    r"(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def _parse_rfc3339(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into an aware datetime."""
    match = _RFC3339.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid RFC3339 time: {text!r}")
    date_part, time_part, fraction, offset = match.groups()
    base = datetime.strptime(f"{date_part}T{time_part}", "%Y-%m-%dT%H:%M:%S")
    micro = int((fraction or "0")[:6].ljust(6, "0"))
    if offset.upper() == "Z":
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == "-" else 1
        delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6]))
        tz = timezone(sign * delta)
    return base.replace(microsecond=micro, tzinfo=tz)


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean")
    return value


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key}: expected an integer")
    return value


def _as_float(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key}: expected a number")
    return float(value)


def _as_time(value: Any, key: str) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return _parse_rfc3339(_as_str(value, key))
    except ValueError as exc:
        raise ValueError(f"{key}: {exc}") from exc


def _as_object_id(value: Any, key: str) -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(_as_str(value, key))
    except (InvalidId, TypeError) as exc:
        raise ValueError(f"{key}: invalid object id") from exc


def _as_mapping(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{key}: expected an object")
    return value


def _as_int_map(value: Any, key: str) -> dict[str, int]:
    return {name: _as_int(item, f"{key}.{name}") for name, item in _as_mapping(value, key).items()}


def _as_productos(value: Any, key: str) -> dict[str, ProductoDetalle]:
    result = {}
    for name, item in _as_mapping(value, key).items():
        result[name] = ProductoDetalle() if item is None else ProductoDetalle.from_dict(item)
    return result


def _as_pagos(value: Any, key: str) -> list[Pago]:
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list")
    return [Pago() if item is None else Pago.from_dict(item) for item in value]


def _field(key: str, parse: Callable[[Any, str], Any], *, default: Any = None,
           default_factory: Callable[[], Any] | None = None, keep_empty: bool = False) -> Any:
    meta = {"key": key, "parse": parse, "keep_empty": keep_empty}
    if default_factory is not None:
        return field(default_factory=default_factory, metadata=meta)
    return field(default=default, metadata=meta)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool):
        return not value
    return isinstance(value, (str, int, float, dict, list)) and not value


def _dump(value: Any) -> Any:
    if isinstance(value, (ProductoDetalle, Pago, Lista)):
        return value.to_document()
    if isinstance(value, dict):
        return {name: _dump(item) for name, item in value.items()}
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return value


def _decode(cls, data):
    """Build an instance of a metadata-driven dataclass from decoded JSON."""
    source = _as_mapping(data, cls.__name__)
    kwargs = {}
    for spec in fields(cls):
        key = spec.metadata["key"]
        value = source.get(key)
        if value is not None:
            kwargs[spec.name] = spec.metadata["parse"](value, key)
    return cls(**kwargs)


def _encode(obj) -> dict[str, Any]:
    """Return the stored form of a metadata-driven dataclass, without empty optional fields."""
    document = {}
    for spec in fields(obj):
        value = getattr(obj, spec.name)
        if spec.metadata["keep_empty"] or not _is_empty(value):
            document[spec.metadata["key"]] = _dump(value)
    return document


@dataclass
class ProductoDetalle:
    """Quantity requested and quantity prepared for one product."""

    cantidad: int = _field("cantidad", _as_int, default=0)
    preparado: int = _field("preparado", _as_int, default=0)

    @classmethod
    def from_dict(cls, data):
        """Build an instance from decoded JSON; raise ValueError on bad data."""
        return _decode(cls, data)

    def to_document(self) -> dict[str, Any]:
        """Return the stored form, leaving out empty fields."""
        return _encode(self)


@dataclass
class Pago:
    """A payment made towards an order."""

    monto: float = _field("monto", _as_float, default=0.0)
    fecha: datetime | None = _field("fecha", _as_time)
    forma_pago: str = _field("formaPago", _as_str, default="")

    @classmethod
    def from_dict(cls, data):
        """Build an instance from decoded JSON; raise ValueError on bad data."""
        return _decode(cls, data)

    def to_document(self) -> dict[str, Any]:
        """Return the stored form, leaving out empty fields."""
        return _encode(self)


@dataclass
class Lista:
    """A school-supplies order."""

    id: ObjectId | None = _field("_id", _as_object_id)
    numero_lista: str = _field("numeroLista", _as_str, default="")
    pin: str = _field("pin", _as_str, default="")
    nombre_tutor: str = _field("nombreTutor", _as_str, default="")
    nombre_alumno: str = _field("nombreAlumno", _as_str, default="")
    correo: str = _field("correo", _as_str, default="")
    telefono: str = _field("telefono", _as_str, default="")
    grado: str = _field("grado", _as_str, default="")
    fecha_creacion: datetime | None = _field("fechaCreacion", _as_time)
    fecha_entrega_esperada: datetime | None = _field("fechaEntregaEsperada", _as_time)
    fecha_entrega_real: datetime | None = _field("fechaEntregaReal", _as_time)
    estado_lista: str = _field("estadoLista", _as_str, default="")
    productos: dict[str, ProductoDetalle] = _field("productos", _as_productos, default_factory=dict)
    utiles_quitados: dict[str, int] = _field("utilesQuitados", _as_int_map, default_factory=dict)
    desea_quitar: bool = _field("deseaQuitar", _as_bool, default=False, keep_empty=True)
    faltantes: dict[str, int] = _field("faltantes", _as_int_map, default_factory=dict)
    lista_forrada: bool = _field("listaForrada", _as_bool, default=False, keep_empty=True)
    etiquetas_personaje: str = _field("etiquetasPersonaje", _as_str, default="")
    status_etiquetas: str = _field("statusEtiquetas", _as_str, default="")
    etiquetas_grandes: bool = _field("etiquetasGrandes", _as_bool, default=False, keep_empty=True)
    etiquetas_medianas: bool = _field("etiquetasMedianas", _as_bool, default=False, keep_empty=True)
    etiquetas_chicas: bool = _field("etiquetasChicas", _as_bool, default=False, keep_empty=True)
    encargado_etiquetas: str = _field("encargadoEtiquetasId", _as_str, default="")
    status_forrado: str = _field("statusForrado", _as_str, default="")
    forma_pago: str = _field("formaPago", _as_str, default="")
    esta_pagado: bool = _field("estaPagado", _as_bool, default=False, keep_empty=True)
    pagos: list[Pago] = _field("pagos", _as_pagos, default_factory=list)
    total_lista: float = _field("totalLista", _as_float, default=0.0)
    total_forrado: float = _field("totalForrado", _as_float, default=0.0)
    total_general: float = _field("totalGeneral", _as_float, default=0.0)
    total_pagado: float = _field("totalPagado", _as_float, default=0.0)
    total_restante: float = _field("totalRestante", _as_float, default=0.0)
    preparado_por_id: str = _field("preparadoPorId", _as_str, default="")

    @classmethod
    def from_dict(cls, data):
        """Build an order from decoded JSON, where the identifier is keyed "id"."""
        source = dict(_as_mapping(data, cls.__name__))
        source.pop("_id", None)
        if "id" in source:
            source["_id"] = source.pop("id")
        return _decode(cls, source)

    def to_document(self) -> dict[str, Any]:
        """Return the stored form, leaving out empty optional fields."""
        return _encode(self)


_ZERO_ID = ObjectId("0" * 24)


@dataclass
class User:
    """An account allowed to use the service."""

    id: ObjectId | None = field(default_factory=ObjectId)
    nombre: str = ""
    email: str = ""
    password: str = ""
    rol: str = ""

    @classmethod
    def from_document(cls, doc):
        """Build a user from a stored document."""
        return cls(
            id=doc.get("_id"),
            nombre=doc.get("nombre") or "",
            email=doc.get("email") or "",
            password=doc.get("password") or "",
            rol=doc.get("rol") or "",
        )

    def to_document(self) -> dict[str, Any]:
        """Return the stored form of the user."""
        document: dict[str, Any] = {}
        if self.id is not None:
            document["_id"] = self.id
        document.update(nombre=self.nombre, email=self.email, password=self.password, rol=self.rol)
        return document

    def to_json(self) -> dict[str, Any]:
        """Return the public form of the user, without the password hash."""
        return {
            "id": str(self.id or _ZERO_ID),
            "nombre": self.nombre,
            "email": self.email,
            "rol": self.rol,
        }


@dataclass
class FilterList:
    """Criteria for searching orders."""

    num_lista: str = ""
    nombre_tutor: str = ""
    nombre_alumno: str = ""
    grado: str = ""
    status_lista: str = ""
    status_forrado: str = ""
    fecha_creacion: datetime | None = None
    fecha_entrega: datetime | None = None