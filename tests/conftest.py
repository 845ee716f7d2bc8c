"""Shared fixtures for indexer_sdk tests."""

from __future__ import annotations

import pytest
from pytest_metadata.plugin import metadata_key

from indexer_sdk.broker.jetstream import STREAM_NAME, Subscription
from indexer_sdk.config import ENV_API, ENV_API_KEY, ENV_TOKEN, ENV_URL

from tests.factories import make_configuration
from tests.mocks import MockJetStream, MockNats, MockPullSubscription, RecordingHandler


def pytest_configure(config):
    """Add queue info to the report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Stream"] = STREAM_NAME


@pytest.fixture
def clean_env(monkeypatch):
    """Process environment without any INDEXER_* variables."""
    for name in (ENV_TOKEN, ENV_URL, ENV_API, ENV_API_KEY):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def configuration():
    return make_configuration()


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def mock_js():
    return MockJetStream()


@pytest.fixture
def mock_nc(mock_js):
    return MockNats(mock_js)


@pytest.fixture
def make_subscription(mock_nc, mock_js):
    """Build a Subscription over mock connection objects."""

    def _make(handler, *batches, name="test_app"):
        return Subscription(
            mock_nc,
            mock_js,
            MockPullSubscription(*batches),
            name,
            handler,
            fetch_batch=10,
            fetch_timeout=0.01,
            error_backoff=0.01,
        )

    return _make
