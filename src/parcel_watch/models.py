"""Core value types for a scan run."""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import NamedTuple

from parcel_watch.schemas import SceneDocument


class Coord(NamedTuple):
    """A parcel coordinate on the grid."""

    x: int
    y: int

    def __str__(self) -> str:
        return f"{self.x},{self.y}"


@dataclass(frozen=True)
class Tile:
    """A rectangular batch of parcels fetched in one content query.

    ``nw`` is the north-west corner and ``se`` the south-east corner; x grows
    eastwards and y grows northwards, so ``nw.y > se.y``.
    """

    nw: Coord
    se: Coord

    @property
    def area(self) -> int:
        return (self.se.x - self.nw.x) * (self.nw.y - self.se.y)

    def contains(self, coord: Coord) -> bool:
        """Cells span ``nw.x <= x < se.x`` and ``se.y < y <= nw.y``, matching ``area``."""
        return self.nw.x <= coord.x < self.se.x and self.se.y < coord.y <= self.nw.y

    def __str__(self) -> str:
        return f"[nw={self.nw} se={self.se}]"


def parse_parcel_id(parcel_id: str) -> Coord | None:
    """Parse an "x,y" parcel id; None when it is not a coordinate pair."""
    try:
        x, y = (int(part) for part in parcel_id.split(","))
    except ValueError:
        return None
    return Coord(x, y)


class RegionRecord(NamedTuple):
    """One occupied parcel as reported by the content service."""

    parcel_id: str
    root_cid: str
    scene_cid: str


class NotificationState(StrEnum):
    """States a scene goes through on its way to a published post."""

    RESOLVING = "resolving"
    INELIGIBLE = "ineligible"
    FAILED = "failed"
    ELIGIBLE = "eligible"
    ASSET_FETCHED = "asset_fetched"
    MEDIA_UPLOADED = "media_uploaded"
    POSTED = "posted"


@dataclass(frozen=True)
class RunCounters:
    """Occupied-parcel totals before and after a run."""

    previous_count: int
    new_count: int

    @property
    def increased(self) -> bool:
        return self.new_count > self.previous_count


@dataclass
class ScanResult:
    """Output of a full grid sweep including retries."""

    snapshot: dict[str, str] = field(default_factory=dict)
    diff: dict[str, str] = field(default_factory=dict)
    unresolved: list[Tile] = field(default_factory=list)
    tiles_scanned: int = 0
    retries: int = 0


@dataclass
class ResolvedScene:
    """Metadata lookup result for one scene id."""

    scene_cid: str
    metadata: SceneDocument | None = None
    error: str | None = None

    @property
    def project_id(self) -> str | None:
        if self.metadata is None or self.metadata.source is None:
            return None
        return self.metadata.source.project_id or None

    @property
    def eligible(self) -> bool:
        return self.error is None and self.project_id is not None


@dataclass
class NotificationOutcome:
    """Final state of one scene's notification."""

    scene_cid: str
    state: NotificationState
    post_id: str | None = None
    error: str | None = None


@dataclass
class RunReport:
    """Summary of one pipeline run."""

    tiles_scanned: int = 0
    retries: int = 0
    unresolved_tiles: list[Tile] = field(default_factory=list)
    previous_count: int = 0
    new_count: int = 0
    differences: int = 0
    unique_scenes: int = 0
    posted: int = 0
    failed: int = 0
    ineligible: int = 0
    milestone_posted: bool = False

    def summary(self) -> str:
        return (
            f"{self.tiles_scanned} tiles ({self.retries} retries, "
            f"{len(self.unresolved_tiles)} unresolved), "
            f"{self.previous_count} -> {self.new_count} LAND, "
            f"{self.differences} differences in {self.unique_scenes} scenes, "
            f"{self.posted} posted, {self.failed} failed, {self.ineligible} ineligible"
        )
