"""Shared httpx plumbing for the service clients."""

from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from parcel_watch.config import Settings
from parcel_watch.errors import MalformedResponse

ModelT = TypeVar("ModelT", bound=BaseModel)

USER_AGENT = "parcel-watch/0.1"


def create_http_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the single client shared by every service client in a run.

    Every request is bounded by ``request_timeout_seconds``.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout_seconds),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
        transport=transport,
    )


def parse_json(response: httpx.Response, model: type[ModelT]) -> ModelT:
    """Validate a JSON response body against ``model``.

    Raises MalformedResponse when the body is not JSON or does not match.
    """
    try:
        payload = response.json()
    except ValueError as e:
        raise MalformedResponse(f"invalid JSON from {response.request.url}: {e}") from e
    if payload is None:
        raise MalformedResponse(f"empty document from {response.request.url}")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise MalformedResponse(
            f"unexpected {model.__name__} shape from {response.request.url}: "
            f"{e.error_count()} validation errors"
        ) from e
