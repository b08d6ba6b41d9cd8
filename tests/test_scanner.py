"""Tests for grid tiling, scanning and retries."""

import pytest
from parcel_watch.models import Coord, RegionRecord, Tile, parse_parcel_id
from parcel_watch.scanner import GridScanner, RetryQueue, is_changed, iter_tiles

from tests.fakes import FakeContentService

FAILING_TILE = Tile(Coord(0, 0), Coord(13, -13))


def cells(tile: Tile) -> set[tuple[int, int]]:
    return {
        (x, y)
        for x in range(tile.nw.x, tile.se.x)
        for y in range(tile.se.y + 1, tile.nw.y + 1)
    }


# ============================================================================
# Tiling
# ============================================================================


def test_small_grid_yields_four_tiles():
    tiles = list(iter_tiles(-13, 13, 13))

    assert len(tiles) == 4
    assert FAILING_TILE in tiles
    assert tiles[0] == Tile(Coord(-13, 13), Coord(0, 0))


@pytest.mark.parametrize(
    ("grid_min", "grid_max", "size"),
    [(-13, 13, 13), (-150, 150, 13), (-10, 10, 3), (0, 7, 10)],
)
def test_tiles_cover_grid_exactly_once(grid_min, grid_max, size):
    tiles = list(iter_tiles(grid_min, grid_max, size))
    side = grid_max - grid_min

    assert sum(t.area for t in tiles) == side * side

    seen: set[tuple[int, int]] = set()
    for tile in tiles:
        tile_cells = cells(tile)
        assert not seen & tile_cells
        seen |= tile_cells
    assert len(seen) == side * side


def test_edge_tiles_are_clamped():
    tiles = list(iter_tiles(-150, 150, 13))

    assert all(t.se.x <= 150 and t.se.y >= -150 for t in tiles)
    last = tiles[-1]
    assert last.se == Coord(150, -150)
    # 300 = 23 * 13 + 1
    assert last.se.x - last.nw.x == 1
    assert last.nw.y - last.se.y == 1


def test_iter_tiles_rejects_bad_size():
    with pytest.raises(ValueError):
        list(iter_tiles(-13, 13, 0))


# ============================================================================
# Diff
# ============================================================================


def test_is_changed():
    previous = {"1,1": "rootA"}

    assert is_changed(previous, "1,1", "rootB") is True
    assert is_changed(previous, "2,2", "rootA") is True
    assert is_changed(previous, "1,1", "rootA") is False


@pytest.mark.asyncio
async def test_scan_builds_snapshot_and_diff():
    content = FakeContentService(
        parcels={
            "-5,5": ("root1", "scene1"),
            "5,5": ("root2", "scene2"),
            "5,-5": ("root3", "scene3"),
        }
    )
    previous = {"-5,5": "root1", "5,5": "old", "9,9": "gone"}
    scanner = GridScanner(content, -13, 13, 13)

    result = await scanner.scan(previous)

    assert result.snapshot == {"-5,5": "root1", "5,5": "root2", "5,-5": "root3"}
    assert result.diff == {"5,5": "scene2", "5,-5": "scene3"}
    assert set(result.diff) <= set(result.snapshot)
    for parcel_id, root in result.snapshot.items():
        assert (parcel_id in result.diff) == (previous.get(parcel_id) != root)
    assert result.tiles_scanned == 4
    assert result.retries == 0


@pytest.mark.asyncio
async def test_later_unchanged_observation_clears_diff_entry():
    class Overlapping(FakeContentService):
        async def fetch_tile(self, tile):
            self.tile_calls.append(tile)
            if len(self.tile_calls) == 1:
                return [RegionRecord("1,1", "new", "sceneX")]
            if len(self.tile_calls) == 2:
                return [RegionRecord("1,1", "root", "sceneY")]
            return []

    scanner = GridScanner(Overlapping(), -13, 13, 13)
    result = await scanner.scan({"1,1": "root"})

    assert result.snapshot == {"1,1": "root"}
    assert result.diff == {}


# ============================================================================
# Retries
# ============================================================================


@pytest.mark.asyncio
async def test_failed_tile_is_retried_until_it_succeeds():
    content = FakeContentService(
        parcels={"5,-5": ("root", "scene")},
        failures={FAILING_TILE: 2},
    )
    scanner = GridScanner(content, -13, 13, 13)

    result = await scanner.scan({})

    assert result.retries == 2
    assert result.unresolved == []
    assert content.tile_calls.count(FAILING_TILE) == 3
    assert result.snapshot == {"5,-5": "root"}
    assert result.diff == {"5,-5": "scene"}


@pytest.mark.asyncio
async def test_retried_tile_matches_immediate_success():
    parcels = {
        "-5,5": ("r1", "s1"),
        "5,-5": ("r2", "s2"),
        "6,-6": ("r3", "s2"),
    }
    previous = {"-5,5": "r1", "6,-6": "old"}

    clean = await GridScanner(FakeContentService(parcels), -13, 13, 13).scan(previous)
    flaky = await GridScanner(
        FakeContentService(parcels, failures={FAILING_TILE: 1}), -13, 13, 13
    ).scan(previous)

    assert flaky.snapshot == clean.snapshot
    assert flaky.diff == clean.diff


@pytest.mark.asyncio
async def test_tile_exceeding_attempts_is_unresolved():
    content = FakeContentService(
        parcels={"5,-5": ("root", "scene"), "-5,5": ("r", "s")},
        failures={FAILING_TILE: 100},
    )
    scanner = GridScanner(content, -13, 13, 13, max_attempts=3)

    result = await scanner.scan({})

    assert result.unresolved == [FAILING_TILE]
    assert content.tile_calls.count(FAILING_TILE) == 3
    assert "5,-5" not in result.snapshot
    assert result.snapshot == {"-5,5": "r"}


def test_retry_queue_is_lifo():
    first = Tile(Coord(0, 0), Coord(1, -1))
    second = Tile(Coord(1, 0), Coord(2, -1))
    queue = RetryQueue()

    queue.record_failure(first)
    queue.record_failure(second)

    assert len(queue) == 2
    assert queue.pop() == second
    assert queue.pop() == first
    assert not queue


def test_retry_queue_unbounded_by_default():
    tile = Tile(Coord(0, 0), Coord(1, -1))
    queue = RetryQueue()

    for _ in range(50):
        assert queue.record_failure(tile) is True
        queue.pop()

    assert queue.attempts(tile) == 50


def test_retry_queue_caps_attempts():
    tile = Tile(Coord(0, 0), Coord(1, -1))
    queue = RetryQueue(max_attempts=2)

    assert queue.record_failure(tile) is True
    queue.pop()
    assert queue.record_failure(tile) is False
    assert not queue


@pytest.mark.asyncio
async def test_unresolved_tile_carries_previous_state_forward():
    content = FakeContentService(
        parcels={"5,-5": ("changed", "scene"), "-5,5": ("r", "s")},
        failures={FAILING_TILE: 100},
    )
    previous = {"5,-5": "root", "6,-7": "root2", "5,5": "elsewhere", "-5,5": "r"}
    scanner = GridScanner(content, -13, 13, 13, max_attempts=2)

    result = await scanner.scan(previous)

    assert result.unresolved == [FAILING_TILE]
    # Parcels inside the failed tile keep their last known roots
    assert result.snapshot["5,-5"] == "root"
    assert result.snapshot["6,-7"] == "root2"
    # "5,5" lies in a tile that resolved empty, so it is gone
    assert "5,5" not in result.snapshot
    assert result.diff == {}


def test_tile_contains_matches_area():
    tile = Tile(Coord(0, 0), Coord(13, -13))

    assert tile.contains(Coord(0, 0))
    assert tile.contains(Coord(12, -12))
    assert not tile.contains(Coord(13, -5))
    assert not tile.contains(Coord(5, -13))
    assert not tile.contains(Coord(5, 1))
    assert sum(tile.contains(Coord(x, y)) for x in range(-20, 20) for y in range(-20, 20)) == (
        tile.area
    )


@pytest.mark.parametrize(
    ("parcel_id", "expected"),
    [("10,-20", Coord(10, -20)), ("0,0", Coord(0, 0)), ("abc", None), ("1,2,3", None)],
)
def test_parse_parcel_id(parcel_id, expected):
    assert parse_parcel_id(parcel_id) == expected
