from flask import request


def get_payload():
    """Request body as a dict, from JSON or multipart/urlencoded form data."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    if request.form:
        return request.form.to_dict()
    return {}


def get_upload(name):
    file = request.files.get(name)
    if file and file.filename:
        return file
    return None
