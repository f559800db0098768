from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every non-2xx response.

    ``detail`` is a message, a ``field -> message`` map for rejected checkout
    details, or the list of request validation errors.
    """

    detail: str | dict[str, str] | list[Any]
    code: str | None = None
