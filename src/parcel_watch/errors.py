"""Exceptions raised by the worker."""


class ParcelWatchError(Exception):
    """Base class for worker errors."""


class MalformedResponse(ParcelWatchError):
    """A remote response could not be decoded or failed schema validation."""


class TileFetchError(ParcelWatchError):
    """Fetching the parcels of one tile failed."""


class MetadataResolutionError(ParcelWatchError):
    """Fetching the scene document for a scene id failed."""


class PreviewFetchError(ParcelWatchError):
    """Fetching a builder preview image failed."""


class SocialPublishError(ParcelWatchError):
    """The social service rejected a media upload or a post."""


class NotificationPublishError(ParcelWatchError):
    """A scene notification was abandoned."""

    def __init__(self, scene_cid: str, state: str, message: str) -> None:
        super().__init__(f"{scene_cid} failed after {state}: {message}")
        self.scene_cid = scene_cid
        self.state = state


class MilestonePublishError(ParcelWatchError):
    """The milestone post could not be published."""


class SnapshotError(ParcelWatchError):
    """The persisted snapshot is unreadable."""
