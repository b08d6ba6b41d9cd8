"""Content resolver - turns the parcel diff into per-scene metadata."""

import logging
from typing import Protocol

from parcel_watch.errors import MetadataResolutionError
from parcel_watch.models import ResolvedScene
from parcel_watch.schemas import SceneDocument

logger = logging.getLogger(__name__)


class SceneSource(Protocol):
    async def fetch_scene(self, scene_cid: str) -> SceneDocument: ...


def unique_scenes(diff: dict[str, str]) -> list[str]:
    """Scene ids in the diff, deduplicated, in first-seen order."""
    return list(dict.fromkeys(diff.values()))


def scene_parcels(diff: dict[str, str], scene_cid: str) -> list[str]:
    """Parcel ids in the diff that point at ``scene_cid``."""
    return [parcel_id for parcel_id, cid in diff.items() if cid == scene_cid]


class ContentResolver:
    """Fetches one scene document per unique scene id in a diff."""

    def __init__(self, source: SceneSource) -> None:
        self._source = source

    async def resolve(self, diff: dict[str, str]) -> dict[str, ResolvedScene]:
        scene_ids = unique_scenes(diff)
        logger.info("%d differences across %d scenes", len(diff), len(scene_ids))

        resolved: dict[str, ResolvedScene] = {}
        for scene_cid in scene_ids:
            try:
                metadata = await self._source.fetch_scene(scene_cid)
            except MetadataResolutionError as e:
                logger.error("Could not resolve scene %s: %s", scene_cid, e)
                resolved[scene_cid] = ResolvedScene(scene_cid, error=str(e))
                continue

            entry = ResolvedScene(scene_cid, metadata=metadata)
            if entry.eligible:
                logger.info("Builder project found for %s: %s", scene_cid, entry.project_id)
            else:
                logger.info("Scene %s is not a builder project", scene_cid)
            resolved[scene_cid] = entry
        return resolved
