"""Uniform JSON response bodies for the HTTP API.

Each helper returns a ``(body, http_status)`` pair that a Flask view can
return directly.
"""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

SUCCESS_MESSAGE = "success"

ResponsePair = tuple[dict[str, Any], int]


@dataclass
class Response:
    """Basic response envelope: business code, message, optional data and meta."""

    code: int
    message: str
    data: Any = None
    meta: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; ``data`` and ``meta`` are left out when unset."""
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            body["data"] = self.data
        if self.meta is not None:
            body["meta"] = self.meta
        return body


@dataclass
class PageResponse:
    """One page of a listing together with its paging figures."""

    items: Any
    total: int
    page: int
    page_size: int

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return {
            "list": self.items,
            "total": self.total,
            "page": self.page,
            "page_size": self.page_size,
        }


def _reply(http_status: int, response: Response) -> ResponsePair:
    return response.to_dict(), int(http_status)


def success(data: Any) -> ResponsePair:
    """A successful response carrying ``data``."""
    return _reply(HTTPStatus.OK, Response(code=HTTPStatus.OK, message=SUCCESS_MESSAGE, data=data))


def fail(message: str) -> ResponsePair:
    """An internal server error response."""
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    return _reply(status, Response(code=status, message=message))


def success_with_meta(data: Any, meta: Any) -> ResponsePair:
    """A successful response carrying data and metadata such as paging."""
    return _reply(
        HTTPStatus.OK,
        Response(code=HTTPStatus.OK, message=SUCCESS_MESSAGE, data=data, meta=meta),
    )


def error(code: int, message: str) -> ResponsePair:
    """A business error, delivered with HTTP status 200."""
    return _reply(HTTPStatus.OK, Response(code=code, message=message))


def error_with_data(code: int, message: str, data: Any) -> ResponsePair:
    """A business error carrying data, delivered with HTTP status 200."""
    return _reply(HTTPStatus.OK, Response(code=code, message=message, data=data))


def custom(http_status: int, code: int, message: str, data: Any) -> ResponsePair:
    """A response with the given HTTP status, business code, message and data."""
    return _reply(http_status, Response(code=code, message=message, data=data))


def page_success(items: Any, total: int, page: int, page_size: int) -> ResponsePair:
    """A successful paged listing: the items as data, paging details as meta."""
    page_data = PageResponse(items=items, total=total, page=page, page_size=page_size)
    meta = {
        "data": page_data.to_dict(),
        "page": page,
        "pageSize": page_size,
        "total": total,
    }
    return success_with_meta(items, meta)