"""Grid scanner - sweeps the parcel grid tile by tile and diffs the result."""

import logging
from collections.abc import Iterator
from typing import Protocol

from parcel_watch.errors import TileFetchError
from parcel_watch.models import Coord, RegionRecord, ScanResult, Tile, parse_parcel_id

logger = logging.getLogger(__name__)


class TileSource(Protocol):
    async def fetch_tile(self, tile: Tile) -> list[RegionRecord]: ...


def iter_tiles(grid_min: int, grid_max: int, size: int) -> Iterator[Tile]:
    """Yield tiles covering the grid, one column at a time.

    Columns advance eastwards from ``grid_min``; within a column tiles advance
    southwards from ``grid_max``. Tiles on the far edges are clamped to the
    grid and may be smaller than ``size``.
    """
    if size <= 0:
        raise ValueError("tile size must be positive")
    for x in range(grid_min, grid_max, size):
        for y in range(grid_max, grid_min, -size):
            nw = Coord(x, y)
            se = Coord(min(x + size, grid_max), max(y - size, grid_min))
            yield Tile(nw, se)


def is_changed(previous: dict[str, str], parcel_id: str, root_cid: str) -> bool:
    """A parcel is a difference when its root differs from, or is missing in, ``previous``."""
    return previous.get(parcel_id) != root_cid


class RetryQueue:
    """LIFO stack of failed tiles with per-tile attempt accounting.

    ``max_attempts`` counts the first attempt; 0 means unbounded.
    """

    def __init__(self, max_attempts: int = 0) -> None:
        self.max_attempts = max_attempts
        self._stack: list[Tile] = []
        self._attempts: dict[Tile, int] = {}

    def __len__(self) -> int:
        return len(self._stack)

    def __bool__(self) -> bool:
        return bool(self._stack)

    def record_failure(self, tile: Tile) -> bool:
        """Count a failed attempt and queue the tile if it may try again.

        Returns False once the tile has used up its attempts.
        """
        attempts = self._attempts.get(tile, 0) + 1
        self._attempts[tile] = attempts
        if self.max_attempts and attempts >= self.max_attempts:
            return False
        self._stack.append(tile)
        return True

    def pop(self) -> Tile:
        return self._stack.pop()

    def attempts(self, tile: Tile) -> int:
        return self._attempts.get(tile, 0)


class GridScanner:
    """Builds the current snapshot and its diff against ``previous``."""

    def __init__(
        self,
        source: TileSource,
        grid_min: int,
        grid_max: int,
        tile_size: int,
        max_attempts: int = 0,
    ) -> None:
        self._source = source
        self.grid_min = grid_min
        self.grid_max = grid_max
        self.tile_size = tile_size
        self.max_attempts = max_attempts

    @property
    def total_area(self) -> int:
        side = self.grid_max - self.grid_min
        return side * side

    async def scan(self, previous: dict[str, str]) -> ScanResult:
        """Sweep every tile once, then drain the retry queue."""
        result = ScanResult()
        queue = RetryQueue(self.max_attempts)
        progress = 0

        logger.info("Fetching map data...")
        for tile in iter_tiles(self.grid_min, self.grid_max, self.tile_size):
            logger.info(
                "%.2f%% - %d LAND (%d failures) (%d differences)",
                progress / self.total_area * 100,
                len(result.snapshot),
                len(queue),
                len(result.diff),
            )
            await self._scan_tile(tile, previous, result, queue)
            result.tiles_scanned += 1
            progress += tile.area

        while queue:
            tile = queue.pop()
            logger.info(
                "Retrying %s (attempt %d) (%d failures) (%d differences)",
                tile,
                queue.attempts(tile) + 1,
                len(queue),
                len(result.diff),
            )
            result.retries += 1
            await self._scan_tile(tile, previous, result, queue)

        if result.unresolved:
            logger.warning(
                "%d tiles unresolved this run: %s",
                len(result.unresolved),
                ", ".join(str(t) for t in result.unresolved),
            )
        logger.info(
            "Scan complete: %d LAND, %d differences", len(result.snapshot), len(result.diff)
        )
        return result

    async def _scan_tile(
        self,
        tile: Tile,
        previous: dict[str, str],
        result: ScanResult,
        queue: RetryQueue,
    ) -> None:
        """Fetch one tile and merge it, queueing it for retry on failure."""
        try:
            records = await self._source.fetch_tile(tile)
        except TileFetchError as e:
            logger.warning("Error %s", e)
            if not queue.record_failure(tile):
                logger.error("Giving up on %s after %d attempts", tile, queue.attempts(tile))
                result.unresolved.append(tile)
                self._carry_forward(tile, previous, result)
            return

        for record in records:
            if is_changed(previous, record.parcel_id, record.root_cid):
                result.diff[record.parcel_id] = record.scene_cid
            else:
                # Later observation wins, same as the snapshot
                result.diff.pop(record.parcel_id, None)
            result.snapshot[record.parcel_id] = record.root_cid

    @staticmethod
    def _carry_forward(tile: Tile, previous: dict[str, str], result: ScanResult) -> None:
        """Keep the last known state of an unresolved tile's parcels.

        Nothing is added to the diff, so the next run compares against the
        same roots instead of seeing them as new deployments.
        """
        kept = 0
        for parcel_id, root_cid in previous.items():
            coord = parse_parcel_id(parcel_id)
            if coord is not None and tile.contains(coord):
                result.snapshot.setdefault(parcel_id, root_cid)
                kept += 1
        if kept:
            logger.info("Kept %d previous parcels for unresolved %s", kept, tile)
