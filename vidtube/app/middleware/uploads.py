"""
middleware/uploads.py — Staging of multipart file uploads.

Incoming files are written to UPLOAD_FOLDER under a randomised, sanitised
name. The media host client uploads the staged copy and deletes it.
"""

from __future__ import annotations

import os
import secrets

from flask import current_app, request
from werkzeug.utils import secure_filename

from vidtube.app.errors import BadRequest, ErrorCode


def stage_upload(field: str, required: bool = True) -> str | None:
    """
    Saves request.files[field] to the upload folder and returns its path.

    Returns None for an absent optional file.
    Raises BadRequest(FILE_MISSING) for an absent required file.
    """
    storage = request.files.get(field)
    if storage is None or not storage.filename:
        if required:
            raise BadRequest(
                ErrorCode.FILE_MISSING,
                f"The '{field}' file is required.",
                field=field,
            )
        return None

    folder = current_app.config["UPLOAD_FOLDER"]
    os.makedirs(folder, exist_ok=True)

    filename = secure_filename(storage.filename) or "upload"
    path = os.path.join(folder, f"{secrets.token_hex(8)}-{filename}")
    storage.save(path)
    return path
