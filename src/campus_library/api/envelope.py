"""
Response envelope shared by every API route.

Successful responses look like ``{"success": true, "data": ...}``; lists
also carry ``count``. Failures look like
``{"success": false, "message": ..., "errors": [...]}``.
"""

from typing import Any

from pydantic import BaseModel


def _dump(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(by_alias=True, mode="json")
    if isinstance(data, list):
        return [_dump(item) for item in data]
    return data


def success(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Wrap a result in the success envelope, with camelCase JSON keys."""
    body: dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = _dump(data)
        if isinstance(data, list):
            body["count"] = len(data)
    return body


def failure(message: str, errors: list[dict] | None = None) -> dict[str, Any]:
    """Build the failure envelope."""
    body: dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body
