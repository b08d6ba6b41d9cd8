"""Content service client: parcel mappings and scene documents."""

import httpx

from parcel_watch.clients.http import parse_json
from parcel_watch.errors import MalformedResponse, MetadataResolutionError, TileFetchError
from parcel_watch.models import RegionRecord, Tile
from parcel_watch.schemas import SceneDocument, ScenesResponse


class ContentClient:
    """Reads deployments from the content server."""

    def __init__(self, http: httpx.AsyncClient, base_url: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")

    async def fetch_tile(self, tile: Tile) -> list[RegionRecord]:
        """Return every occupied parcel inside ``tile``.

        Network errors, non-2xx statuses and malformed bodies all raise
        TileFetchError.
        """
        params = {
            "x1": tile.nw.x,
            "x2": tile.se.x,
            "y1": tile.nw.y,
            "y2": tile.se.y,
        }
        try:
            response = await self._http.get(f"{self._base_url}/scenes", params=params)
            response.raise_for_status()
            body = parse_json(response, ScenesResponse)
        except (httpx.HTTPError, MalformedResponse) as e:
            raise TileFetchError(f"{tile} {e}") from e

        return [
            RegionRecord(m.parcel_id, m.root_cid, m.scene_cid) for m in body.data
        ]

    async def fetch_scene(self, scene_cid: str) -> SceneDocument:
        """Fetch the scene document stored under ``scene_cid``."""
        try:
            response = await self._http.get(f"{self._base_url}/contents/{scene_cid}")
            response.raise_for_status()
            return parse_json(response, SceneDocument)
        except (httpx.HTTPError, MalformedResponse) as e:
            raise MetadataResolutionError(f"{scene_cid}: {e}") from e
