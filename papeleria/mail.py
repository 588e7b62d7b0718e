"""HTML e-mail delivery over SMTP and the HTML fragments used in messages."""

from __future__ import annotations

import os
import smtplib
import ssl
from collections.abc import Iterable, Mapping
from datetime import datetime

from .models import ProductoDetalle

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}


def _build_message(subject: str, html_body: str) -> bytes:
    return (
        "Subject: " + subject + "\r\n"
        "MIME-version: 1.0;\r\n"
        'Content-Type: text/html; charset="UTF-8";\r\n\r\n' + html_body
    ).encode("utf-8")


def send_html_email(to: Iterable[str], subject: str, html_body: str) -> None:
    """Send an HTML message using the EMAIL_* settings from the environment."""
    sender = os.environ.get("EMAIL_FROM", "")
    password = os.environ.get("EMAIL_PASSWORD", "")
    host = os.environ.get("EMAIL_SMTP", "")
    port = os.environ.get("EMAIL_PORT") or "587"
    recipients = list(to)
    message = _build_message(subject, html_body)

    try:
        with smtplib.SMTP(host, int(port), timeout=30) as server:
            server.ehlo()
            encrypted = False
            if server.has_extn("starttls"):
                server.starttls(context=ssl.create_default_context())
                server.ehlo()
                encrypted = True
            if not server.has_extn("auth"):
                raise smtplib.SMTPException("server doesn't support AUTH")
            if not encrypted and host not in _LOCAL_HOSTS:
                raise smtplib.SMTPException("unencrypted connection")
            server.login(sender, password)
            server.sendmail(sender, recipients, message)
    except (smtplib.SMTPException, OSError, ValueError) as exc:
        raise smtplib.SMTPException(f"error al enviar correo: {exc}") from exc


def format_date(value: datetime | None) -> str:
    """Format a date as "02 Jan 2006", or "N/A" when missing."""
    if value is None:
        return "N/A"
    return f"{value.day:02d} {_MONTHS[value.month - 1]} {value.year:04d}"


def _html_list(items: Iterable[tuple[str, int]]) -> str:
    entries = "".join(f"<li>{name}: {count}</li>" for name, count in items if count > 0)
    return f"<ul style='padding-left: 20px;'>{entries}</ul>"


def build_productos_html(productos: Mapping[str, ProductoDetalle]) -> str:
    """List the products with a positive quantity as an HTML list."""
    return _html_list((name, detalle.cantidad) for name, detalle in productos.items())


def build_utiles_quitados_html(utiles: Mapping[str, int]) -> str:
    """List the removed supplies, or say that none were removed."""
    if not utiles:
        return "<p>No se eliminaron útiles.</p>"
    return _html_list(utiles.items())