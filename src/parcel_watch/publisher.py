"""Social publishing: one post per new builder scene plus LAND milestones."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

from parcel_watch.errors import (
    MilestonePublishError,
    NotificationPublishError,
    PreviewFetchError,
    SocialPublishError,
)
from parcel_watch.models import NotificationOutcome, NotificationState, ResolvedScene, RunCounters
from parcel_watch.resolver import scene_parcels

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class PreviewSource(Protocol):
    async def fetch_preview(self, project_id: str) -> bytes: ...


class SocialSink(Protocol):
    async def upload_media(self, data: bytes) -> str: ...

    async def post(self, text: str, media_id: str | None = None) -> str: ...


def scene_post_text(label: str, parcels: int) -> str:
    suffix = "" if parcels == 1 else "s"
    return (
        "New scene deployed 🚀!\n"
        "\n"
        f"Coords: {label}\n"
        f"Size: {parcels} parcel{suffix}\n"
        "\n"
        "#decentraland"
    )


def milestone_post_text(count: int) -> str:
    return f"There are {count:,} LAND with content deployed on them!"


class NotificationPublisher:
    """Posts each eligible scene, one at a time.

    A failure while handling one scene abandons that scene only. Every
    successful post is followed by ``post_delay`` seconds of sleep to stay
    under the social service's rate limit.
    """

    def __init__(
        self,
        preview: PreviewSource,
        social: SocialSink,
        post_delay: float = 10.0,
        dry_run: bool = False,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._preview = preview
        self._social = social
        self.post_delay = post_delay
        self.dry_run = dry_run
        self._sleep = sleep

    async def publish(
        self, resolved: dict[str, ResolvedScene], diff: dict[str, str]
    ) -> list[NotificationOutcome]:
        outcomes: list[NotificationOutcome] = []
        for scene in resolved.values():
            if scene.error is not None:
                outcomes.append(
                    NotificationOutcome(scene.scene_cid, NotificationState.FAILED, error=scene.error)
                )
                continue
            if not scene.eligible:
                outcomes.append(NotificationOutcome(scene.scene_cid, NotificationState.INELIGIBLE))
                continue

            try:
                outcome = await self._notify(scene, diff)
            except NotificationPublishError as e:
                logger.error("Notification abandoned: %s", e)
                outcomes.append(
                    NotificationOutcome(scene.scene_cid, NotificationState.FAILED, error=str(e))
                )
                continue

            outcomes.append(outcome)
            if outcome.state == NotificationState.POSTED:
                logger.info("Waiting %s seconds...", self.post_delay)
                await self._sleep(self.post_delay)
        return outcomes

    async def _notify(self, scene: ResolvedScene, diff: dict[str, str]) -> NotificationOutcome:
        """Walk one scene from ELIGIBLE to POSTED."""
        state = NotificationState.ELIGIBLE
        project_id = scene.project_id
        assert project_id is not None

        parcels = scene_parcels(diff, scene.scene_cid)
        if not parcels:
            raise NotificationPublishError(scene.scene_cid, state, "scene has no parcels in diff")
        text = scene_post_text(parcels[0], len(parcels))

        try:
            logger.info("Fetching preview for project %s", project_id)
            image = await self._preview.fetch_preview(project_id)
            state = NotificationState.ASSET_FETCHED

            if self.dry_run:
                logger.info("Dry run, not posting for %s:\n%s", scene.scene_cid, text)
                return NotificationOutcome(scene.scene_cid, state)

            logger.info("Posting media: %d bytes", len(image))
            media_id = await self._social.upload_media(image)
            state = NotificationState.MEDIA_UPLOADED

            logger.info("Posting for media id: %s", media_id)
            post_id = await self._social.post(text, media_id)
            state = NotificationState.POSTED
        except (PreviewFetchError, SocialPublishError) as e:
            raise NotificationPublishError(scene.scene_cid, state, str(e)) from e

        logger.info("Success! Post id: %s", post_id)
        return NotificationOutcome(scene.scene_cid, state, post_id=post_id)


class MilestonePublisher:
    """Announces the total LAND count when it grows."""

    def __init__(self, social: SocialSink, dry_run: bool = False) -> None:
        self._social = social
        self.dry_run = dry_run

    async def maybe_notify(self, counters: RunCounters) -> bool:
        """Post the new total if it increased; returns whether a post went out.

        Failures are logged and swallowed.
        """
        logger.info("Prev count: %d", counters.previous_count)
        logger.info("New count: %d", counters.new_count)
        if not counters.increased:
            return False

        logger.info("Count increased to %d LAND", counters.new_count)
        text = milestone_post_text(counters.new_count)
        if self.dry_run:
            logger.info("Dry run, not posting:\n%s", text)
            return False

        try:
            post_id = await self._post(text)
        except MilestonePublishError:
            logger.exception("Milestone post failed")
            return False

        logger.info("Success! Post id %s", post_id)
        return True

    async def _post(self, text: str) -> str:
        try:
            return await self._social.post(text)
        except SocialPublishError as e:
            raise MilestonePublishError(str(e)) from e
