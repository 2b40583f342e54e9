"""Success envelope helpers.

Every successful response is ``{"success": true, ...payload}`` with camelCase
payload keys.
"""

from typing import Any, Optional

from pydantic import BaseModel

from schemas.base import CamelModel


def _dump(value: Any) -> Any:
    if isinstance(value, CamelModel):
        return value.to_api()
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value


def envelope(message: Optional[str] = None, **payload: Any) -> dict:
    """Build a success body with each payload value under its own key."""
    body = {"success": True}
    if message:
        body["message"] = message
    for key, value in payload.items():
        body[key] = _dump(value)
    return body


def spread(model: CamelModel, message: Optional[str] = None) -> dict:
    """Build a success body with the model's fields at the top level."""
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(model.to_api())
    return body
