"""Pipeline - one scan, diff and notify pass."""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from parcel_watch.clients import ContentClient, PreviewClient, SocialClient, create_http_client
from parcel_watch.config import Settings
from parcel_watch.models import NotificationState, RunCounters, RunReport
from parcel_watch.publisher import MilestonePublisher, NotificationPublisher, Sleep
from parcel_watch.resolver import ContentResolver
from parcel_watch.scanner import GridScanner
from parcel_watch.snapshot import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    """Sequences the components of a single run.

    The previous snapshot is loaded once and left untouched; the new snapshot
    is persisted before anything is posted.
    """

    store: SnapshotStore
    scanner: GridScanner
    resolver: ContentResolver
    notifier: NotificationPublisher
    milestones: MilestonePublisher

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http: httpx.AsyncClient,
        sleep: Sleep = asyncio.sleep,
    ) -> "Pipeline":
        content = ContentClient(http, settings.content_url)
        preview = PreviewClient(http, settings.builder_url)
        social = SocialClient.from_settings(http, settings)
        return cls(
            store=SnapshotStore(settings.snapshot_path),
            scanner=GridScanner(
                content,
                settings.grid_min,
                settings.grid_max,
                settings.tile_size,
                settings.max_tile_attempts,
            ),
            resolver=ContentResolver(content),
            notifier=NotificationPublisher(
                preview,
                social,
                post_delay=settings.post_delay_seconds,
                dry_run=settings.dry_run,
                sleep=sleep,
            ),
            milestones=MilestonePublisher(social, dry_run=settings.dry_run),
        )

    async def run(self) -> RunReport:
        previous = self.store.load()

        scan = await self.scanner.scan(previous)

        logger.info("Writing map data...")
        self.store.persist(scan.snapshot)

        logger.info("Finding differences...")
        resolved = await self.resolver.resolve(scan.diff)
        outcomes = await self.notifier.publish(resolved, scan.diff)

        counters = RunCounters(previous_count=len(previous), new_count=len(scan.snapshot))
        milestone_posted = await self.milestones.maybe_notify(counters)

        report = RunReport(
            tiles_scanned=scan.tiles_scanned,
            retries=scan.retries,
            unresolved_tiles=list(scan.unresolved),
            previous_count=counters.previous_count,
            new_count=counters.new_count,
            differences=len(scan.diff),
            unique_scenes=len(resolved),
            posted=sum(o.state == NotificationState.POSTED for o in outcomes),
            failed=sum(o.state == NotificationState.FAILED for o in outcomes),
            ineligible=sum(o.state == NotificationState.INELIGIBLE for o in outcomes),
            milestone_posted=milestone_posted,
        )
        logger.info("Run complete: %s", report.summary())
        return report


async def run_once(settings: Settings) -> RunReport:
    """Run the pipeline once with a fresh HTTP client."""
    async with create_http_client(settings) as http:
        return await Pipeline.from_settings(settings, http).run()
