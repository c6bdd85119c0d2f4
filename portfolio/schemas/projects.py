from typing import Any, Mapping, Optional

import pydantic
from pydantic import BaseModel, Field
from starlette.requests import Request

from portfolio.core.errors import ValidationError

FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class ProjectForm(BaseModel):
    """Fields accepted when creating or editing a project."""

    title: str = Field(min_length=1)
    description: Optional[str] = None

    model_config = {"extra": "ignore"}


def parse_project_form(data: Mapping[str, Any]) -> ProjectForm:
    """Validate raw body fields into a ProjectForm.

    Raises ValidationError listing each offending field.
    """
    try:
        return ProjectForm.model_validate(dict(data))
    except pydantic.ValidationError as exc:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in exc.errors()
        ]
        raise ValidationError(errors) from exc


async def decode_project_form(request: Request) -> ProjectForm:
    """Read the request body (form or JSON) and decode it into a ProjectForm."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError as exc:
            raise ValidationError(["body: malformed JSON"]) from exc
        if not isinstance(payload, dict):
            raise ValidationError(["body: expected an object"])
        return parse_project_form(payload)

    if content_type.startswith(FORM_CONTENT_TYPES):
        form = await request.form()
        fields = {key: value for key, value in form.items() if isinstance(value, str)}
        return parse_project_form(fields)

    raise ValidationError([f"body: unsupported content type {content_type or 'none'!r}"])
