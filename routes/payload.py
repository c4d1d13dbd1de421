# routes/payload.py
# Тело запроса: JSON-объект или форма

from flask import request

from errors import ValidationError


def json_payload(allow_form=False):
    data = request.get_json(silent=True)
    if data is None:
        return request.form if allow_form else {}
    if not isinstance(data, dict):
        raise ValidationError('Тело запроса должно быть JSON-объектом.')
    return data
