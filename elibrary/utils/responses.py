from flask import jsonify

from elibrary.services.errors import ServiceError


def json_error(message, code=400, kind=None):
    return jsonify({"success": False, "message": message, "error": kind}), code


def service_error(e: ServiceError):
    return json_error(e.message, e.http_status, e.kind.value)


def iso(dt):
    return dt.isoformat() if dt else None


def money(value):
    return float(value) if value is not None else 0.0
