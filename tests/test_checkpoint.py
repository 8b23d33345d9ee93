# File: tests/test_checkpoint.py
import json
from collections import deque

import pytest

from qrawler.crawler.url_frontier import FrontierState
from qrawler.storage.checkpoint import CheckpointError, CheckpointStore


def test_round_trip_preserves_order_and_seen(tmp_path):
    store = CheckpointStore(str(tmp_path / "states.json"))
    state = FrontierState(
        waiting=deque(["https://a.com/c", "https://a.com/b", "https://a.com/d"]),
        seen={"https://a.com/", "https://a.com/b", "https://a.com/c", "https://a.com/d"},
    )

    store.save(state)
    restored = store.load()

    assert list(restored.waiting) == list(state.waiting)
    assert restored.seen == state.seen


def test_missing_checkpoint_means_start_fresh(tmp_path):
    assert CheckpointStore(str(tmp_path / "absent.json")).load() is None


def test_unreadable_checkpoint_means_start_fresh(tmp_path):
    # A directory in place of the file cannot be read
    (tmp_path / "states.json").mkdir()
    assert CheckpointStore(str(tmp_path / "states.json")).load() is None


def test_corrupt_checkpoint_is_fatal(tmp_path):
    path = tmp_path / "states.json"
    path.write_text('{"WaitingQueue": ["https://a.com/"], "QueuedSet": {')
    with pytest.raises(CheckpointError):
        CheckpointStore(str(path)).load()


def test_checkpoint_with_non_object_is_fatal(tmp_path):
    path = tmp_path / "states.json"
    path.write_text('["https://a.com/"]')
    with pytest.raises(CheckpointError):
        CheckpointStore(str(path)).load()


def test_checkpoint_violating_seen_invariant_is_fatal(tmp_path):
    path = tmp_path / "states.json"
    path.write_text(json.dumps({'WaitingQueue': ["https://a.com/x"], 'QueuedSet': {}}))
    with pytest.raises(CheckpointError):
        CheckpointStore(str(path)).load()


def test_shorter_save_leaves_no_stale_bytes(tmp_path):
    path = tmp_path / "states.json"
    store = CheckpointStore(str(path))

    big = FrontierState(
        waiting=deque(f"https://a.com/page{i}" for i in range(200)),
        seen={f"https://a.com/page{i}" for i in range(200)},
    )
    store.save(big)
    store.save(FrontierState(waiting=deque(["https://a.com/"]), seen={"https://a.com/"}))

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {'WaitingQueue': ["https://a.com/"], 'QueuedSet': {"https://a.com/": True}}


def test_save_leaves_no_temporary_files(tmp_path):
    store = CheckpointStore(str(tmp_path / "states.json"))
    store.save(FrontierState(waiting=deque(["A"]), seen={"A"}))
    store.save(FrontierState(waiting=deque(), seen={"A"}))

    assert sorted(p.name for p in tmp_path.iterdir()) == ["states.json"]


def test_save_failure_raises_checkpoint_error(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    store = CheckpointStore(str(blocker / "states.json"))

    with pytest.raises(CheckpointError):
        store.save(FrontierState())


def test_loads_legacy_checkpoint_file(tmp_path):
    path = tmp_path / "states.json"
    path.write_text(
        '{"WaitingQueue":["https://a.com/b","https://a.com/c"],'
        '"QueuedSet":{"https://a.com/":true,"https://a.com/b":true,"https://a.com/c":true}}'
    )
    state = CheckpointStore(str(path)).load()
    assert list(state.waiting) == ["https://a.com/b", "https://a.com/c"]
    assert len(state.seen) == 3
