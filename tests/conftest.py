import pytest

from symbol_oracle.analytics.engine import StatisticsEngine
from symbol_oracle.db.store import JsonFileStore


class CountingStore(JsonFileStore):
    def __init__(self, path):
        super().__init__(path)
        self.saves = 0

    def save(self, snapshot):
        self.saves += 1
        super().save(snapshot)


@pytest.fixture
def store(tmp_path):
    return CountingStore(tmp_path / "shared_data.json")


@pytest.fixture
def engine(store):
    return StatisticsEngine(store, window=29, alpha=1.0)
