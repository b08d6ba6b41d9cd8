"""Twitter client for media uploads and posts."""

import base64

import httpx
from authlib.integrations.httpx_client import OAuth1Auth

from parcel_watch.clients.http import parse_json
from parcel_watch.config import Settings
from parcel_watch.errors import MalformedResponse, SocialPublishError
from parcel_watch.schemas import MediaUploadResponse, TweetResponse


class SocialClient:
    """Publishes posts on behalf of the bot account.

    Requests are signed with OAuth 1.0a user-context credentials.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        api_url: str,
        upload_url: str,
        auth: httpx.Auth,
    ) -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")
        self._upload_url = upload_url.rstrip("/")
        self._auth = auth

    @classmethod
    def from_settings(cls, http: httpx.AsyncClient, settings: Settings) -> "SocialClient":
        auth = OAuth1Auth(
            client_id=settings.consumer_key,
            client_secret=settings.consumer_secret,
            token=settings.access_token_key,
            token_secret=settings.access_token_secret,
        )
        return cls(http, settings.twitter_api_url, settings.twitter_upload_url, auth)

    async def upload_media(self, data: bytes) -> str:
        """Upload an image and return its media id string."""
        # Sent form-encoded so the payload is covered by the OAuth signature
        form = {"media_data": base64.b64encode(data).decode("ascii")}
        try:
            response = await self._http.post(
                f"{self._upload_url}/1.1/media/upload.json", data=form, auth=self._auth
            )
            response.raise_for_status()
            return parse_json(response, MediaUploadResponse).media_id_string
        except (httpx.HTTPError, MalformedResponse) as e:
            raise SocialPublishError(f"media upload failed: {e}") from e

    async def post(self, text: str, media_id: str | None = None) -> str:
        """Publish a post and return its id."""
        payload: dict = {"text": text}
        if media_id:
            payload["media"] = {"media_ids": [media_id]}
        try:
            response = await self._http.post(
                f"{self._api_url}/2/tweets", json=payload, auth=self._auth
            )
            response.raise_for_status()
            return parse_json(response, TweetResponse).data.id
        except (httpx.HTTPError, MalformedResponse) as e:
            raise SocialPublishError(f"post failed: {e}") from e
