"""Pytest configuration and fixtures for parcel watch tests."""

import pytest
from parcel_watch.config import Settings

from tests.fakes import FakeContentService, FakePreviewService, FakeSocialService, RecordingSleep


@pytest.fixture
def make_content():
    """Factory for an in-memory content service."""

    def factory(parcels=None, scenes=None, **kwargs) -> FakeContentService:
        return FakeContentService(parcels, scenes, **kwargs)

    return factory


@pytest.fixture
def make_settings(tmp_path):
    """Factory for settings on a small grid with the snapshot under tmp_path."""

    def factory(**overrides) -> Settings:
        values = {
            "grid_min": -13,
            "grid_max": 13,
            "snapshot_path": str(tmp_path / "deployments.json"),
        }
        values.update(overrides)
        return Settings(**values)

    return factory


@pytest.fixture
def preview():
    return FakePreviewService()


@pytest.fixture
def social():
    return FakeSocialService()


@pytest.fixture
def sleep():
    return RecordingSleep()
