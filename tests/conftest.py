"""Test configuration and shared fixtures for checktree.

Stores built here deliver query results synchronously unless a test asks for
the ``deferred_store``, whose completions wait in a :class:`DeferredScheduler`
until the test runs them.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Tuple

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from checktree.core.models import ForestStoreModel
from checktree.core.store import ItemStore

# Configure test logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


class DeferredScheduler:
    """Tk-style ``(delay_ms, fn)`` scheduler that queues instead of running."""

    def __init__(self) -> None:
        self.queue: List[Callable[[], None]] = []

    def __call__(self, _delay_ms: int, fn: Callable[[], None]) -> None:
        self.queue.append(fn)

    @property
    def pending(self) -> int:
        return len(self.queue)

    def run(self, index: int = 0) -> None:
        """Run one queued completion, by queue position."""
        self.queue.pop(index)()

    def run_all(self) -> None:
        """Run queued completions, including those queued meanwhile, until empty."""
        while self.queue:
            self.queue.pop(0)()


class EventRecorder:
    """Subscribes to every event of a notifier and records the calls."""

    def __init__(self, notifier: Any, subscriber_id: str = "recorder") -> None:
        self.calls: List[Tuple[Any, ...]] = []
        notifier.subscribe(
            subscriber_id,
            **{event: self._recorder(event) for event in notifier.EVENTS},
        )

    def _recorder(self, event: str) -> Callable[..., None]:
        def record(*args: Any) -> None:
            self.calls.append((event,) + args)
        return record

    def of(self, event: str) -> List[Tuple[Any, ...]]:
        return [call[1:] for call in self.calls if call[0] == event]

    def clear(self) -> None:
        self.calls.clear()


def make_groceries() -> Dict[str, Any]:
    """Three top-level groups; ``tomato`` is shared by fruit and vegetables."""
    return {
        "identifier": "id",
        "label": "name",
        "items": [
            {"id": "fruit", "name": "Fruit", "type": "group", "children": [
                {"id": "apple", "name": "Apple", "checked": True},
                {"id": "pear", "name": "Pear", "checked": False},
                {"_reference": "tomato"},
            ]},
            {"id": "vegetables", "name": "Vegetables", "type": "group", "children": [
                {"id": "carrot", "name": "Carrot", "checked": False},
                {"id": "tomato", "name": "Tomato", "checked": False},
            ]},
            {"id": "bread", "name": "Bread", "type": "group", "children": [
                {"id": "rye", "name": "Rye", "checked": True},
            ]},
        ],
    }


@pytest.fixture
def groceries() -> Dict[str, Any]:
    return make_groceries()


@pytest.fixture
def store(groceries) -> ItemStore:
    return ItemStore(groceries)


@pytest.fixture
def scheduler() -> DeferredScheduler:
    return DeferredScheduler()


@pytest.fixture
def deferred_store(groceries, scheduler) -> ItemStore:
    return ItemStore(groceries, schedule_ui=scheduler)


@pytest.fixture
def forest(store) -> ForestStoreModel:
    model = ForestStoreModel(store, root_label="All")
    model.validate_data()
    yield model
    model.destroy()


@pytest.fixture
def recorder_factory():
    return EventRecorder


@pytest.fixture
def lookup() -> Callable[[ItemStore, str], Any]:
    """Synchronous item lookup for stores built with the default scheduler."""

    def _lookup(store: ItemStore, identity: str) -> Any:
        found: List[Any] = []
        store.fetch_item_by_identity(identity, found.append)
        return found[0]

    return _lookup


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config and log directories at a temp dir and reset the singleton."""
    from checktree.config import ConfigManager

    monkeypatch.setenv("CHECKTREE_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("CHECKTREE_LOG_DIR", str(tmp_path / "logs"))
    ConfigManager._instance = None
    yield tmp_path / "config"
    ConfigManager._instance = None
