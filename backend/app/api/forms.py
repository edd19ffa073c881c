"""Request bodies that may arrive either as JSON or as multipart form data."""
from __future__ import annotations

import json
from typing import TypeVar

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from starlette.datastructures import UploadFile

from app.core.exceptions import ValidationFailedError
from app.schemas.session import BulkSessionCreate, SessionCreate
from app.services.uploads import IncomingFile, read_upload

ModelT = TypeVar("ModelT", bound=BaseModel)


def _is_multipart(request: Request) -> bool:
    return request.headers.get("content-type", "").startswith("multipart/form-data")


def _parse(model: type[ModelT], data: object) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False, include_context=False)) from exc


async def _read(request: Request, model: type[ModelT], *, file_field: str) -> tuple[ModelT, IncomingFile | None]:
    if not _is_multipart(request):
        try:
            data = await request.json()
        except ValueError as exc:
            raise ValidationFailedError({"body": "Request body must be valid JSON"}) from exc
        return _parse(model, data), None

    form = await request.form()
    raw_payload = form.get("payload")
    if isinstance(raw_payload, str):
        try:
            data = json.loads(raw_payload)
        except ValueError as exc:
            raise ValidationFailedError({"payload": "Payload must be valid JSON"}) from exc
    else:
        data = {key: value for key, value in form.items() if isinstance(value, str) and value != ""}

    upload = form.get(file_field)
    attachment = None
    if isinstance(upload, UploadFile) and upload.filename:
        attachment = await read_upload(upload)
    return _parse(model, data), attachment


async def session_create_body(request: Request) -> tuple[SessionCreate, IncomingFile | None]:
    return await _read(request, SessionCreate, file_field="poster")


async def bulk_session_body(request: Request) -> tuple[BulkSessionCreate, IncomingFile | None]:
    return await _read(request, BulkSessionCreate, file_field="poster")
