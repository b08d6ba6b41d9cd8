"""Response schemas for the remote services.

Only the fields the worker reads are declared; anything else in a payload is
ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SceneMapping(BaseModel):
    """A parcel-to-scene mapping returned by ``/scenes``."""

    parcel_id: str
    root_cid: str
    scene_cid: str


class ScenesResponse(BaseModel):
    """Body of a ``/scenes`` query."""

    data: list[SceneMapping]


class SceneSource(BaseModel):
    """Where a scene was produced."""

    model_config = ConfigDict(populate_by_name=True)

    origin: Any = None
    project_id: str | None = Field(default=None, alias="projectId")


class SceneDocument(BaseModel):
    """Scene descriptor stored under ``/contents/{cid}``.

    Only the builder source is read; the rest of the document is free-form.
    """

    source: SceneSource | None = None


class MediaUploadResponse(BaseModel):
    media_id_string: str


class TweetData(BaseModel):
    id: str


class TweetResponse(BaseModel):
    data: TweetData
