"""HTTP clients for the remote services the worker talks to."""

from parcel_watch.clients.content import ContentClient
from parcel_watch.clients.http import create_http_client, parse_json
from parcel_watch.clients.preview import PreviewClient
from parcel_watch.clients.social import SocialClient

__all__ = [
    "ContentClient",
    "PreviewClient",
    "SocialClient",
    "create_http_client",
    "parse_json",
]
