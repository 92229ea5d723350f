import pytest
from datetime import datetime, timezone

from fakes import (
    InMemoryCampaignRepository,
    InMemoryCampaignSource,
    InMemoryCountersStore,
    RecordingAudit,
    RecordingDispatcher,
)

NOW = datetime(2025, 8, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def counters_store():
    return InMemoryCountersStore()


@pytest.fixture
def campaign_source():
    return InMemoryCampaignSource()


@pytest.fixture
def repository():
    return InMemoryCampaignRepository()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def audit():
    return RecordingAudit()
