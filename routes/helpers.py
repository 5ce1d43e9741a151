from datetime import date, datetime
from decimal import Decimal

from flask import current_app, request

from utils.errors import InvalidInput, NotFound


def get_store(name):
    return current_app.extensions['carbon']['stores'][name]


def get_service(name):
    return current_app.extensions['carbon'][name]


def request_data():
    """JSON body, falling back to form fields."""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    if not isinstance(data, dict):
        raise InvalidInput("Request body must be a JSON object")
    return data


def serialize(value):
    """Make store rows JSON friendly; kg and km values are rounded for display."""
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            item = serialize(item)
            if isinstance(item, float) and (key.endswith('_kg') or key.endswith('_km')):
                item = round(item, 2)
            out[key] = item
        return out
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return float(value)
    return value


def require_profile(company_id, user_id):
    profile = get_store('users').get_profile(company_id, user_id)
    if not profile:
        raise NotFound("User not found in this company")
    return profile


def parse_float(value, name):
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{name} must be a number")
