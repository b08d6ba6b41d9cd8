"""Builder preview image client."""

import time

import httpx

from parcel_watch.errors import PreviewFetchError


class PreviewClient:
    """Downloads the preview render of a builder project."""

    def __init__(self, http: httpx.AsyncClient, base_url: str) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")

    def preview_url(self, project_id: str) -> str:
        return f"{self._base_url}/v1/projects/{project_id}/media/preview.png"

    async def fetch_preview(self, project_id: str) -> bytes:
        """Return the PNG bytes of the project's preview.

        The query string carries the current time in milliseconds so cached
        copies are bypassed.
        """
        url = f"{self.preview_url(project_id)}?{int(time.time() * 1000)}"
        try:
            response = await self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PreviewFetchError(f"{project_id}: {e}") from e
        if not response.content:
            raise PreviewFetchError(f"{project_id}: empty preview")
        return response.content
