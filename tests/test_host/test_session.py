"""Tests for LayoutSession: incremental placement, debounce and stale results."""

import asyncio
from datetime import datetime, timedelta, timezone

import numpy as np
import pytest

from pixelspace.engine.config import IncrementalConfig
from pixelspace.engine.weights import FeatureWeights
from pixelspace.host.session import LayoutSession
from pixelspace.host.worker import ComputationHost
from pixelspace.models.item import Item, Position
from pixelspace.models.messages import DoneMessage, LogMessage, ProgressMessage, TSNEConfig, UMAPConfig
from tests.conftest import BLANK, HOUSE, PINWHEEL, SMILEY, filled_square, make_item


class RecordingHost:
    """Stands in for ComputationHost; records submissions, delivers nothing."""

    def __init__(self) -> None:
        self.submitted = []
        self.terminate_callbacks = []

    def submit(self, vectors, config) -> int:
        self.submitted.append((list(vectors), config))
        return len(self.submitted)

    def poll(self) -> list:
        return []

    def on_terminate(self, callback) -> None:
        self.terminate_callbacks.append(callback)

    def terminate(self) -> None:
        for callback in self.terminate_callbacks:
            callback()


def _drawings(n: int) -> list:
    return [filled_square(r % 12, (r * 5) % 12, 2 + r % 3, color=r % 8 if r % 8 != 1 else 0) for r in range(n)]


def _done(rid: int, n: int) -> DoneMessage:
    return DoneMessage(request_id=rid, embeddings=[(float(i), float(i % 3)) for i in range(n)], iterations=1)


def _run(coro):
    return asyncio.run(coro)


def test_items_before_first_layout_schedule_recompute():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=0.01)
        for i, pixels in enumerate(_drawings(4)):
            assert session.add_item(make_item(f"d{i}", pixels)) is None
        assert host.submitted == []
        await asyncio.sleep(0.1)
        return host, session

    host, session = _run(scenario())
    # Debounced: four arrivals, one request
    assert len(host.submitted) == 1
    vectors, config = host.submitted[0]
    assert len(vectors) == 4
    assert isinstance(config, UMAPConfig)
    assert session.computing


def test_done_applies_positions():
    published = []

    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10, on_positions=published.append)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        rid = session.recompute()
        applied = session.handle_message(_done(rid, 3))
        return session, applied

    session, applied = _run(scenario())
    assert applied
    assert set(session.positions) == {"d0", "d1", "d2"}
    assert not session.computing
    assert session.progress is None
    assert published[-1] == session.positions


def test_stale_request_discarded():
    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        first = session.recompute()
        second = session.recompute()
        stale = session.handle_message(_done(first, 3))
        positions_after_stale = dict(session.positions)
        fresh = session.handle_message(_done(second, 3))
        return stale, positions_after_stale, fresh, session

    stale, positions_after_stale, fresh, session = _run(scenario())
    assert not stale
    assert positions_after_stale == {}
    assert fresh
    assert len(session.positions) == 3


def test_result_for_changed_item_set_discarded():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=0.01)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        rid = session.recompute()
        session.add_item(make_item("late", HOUSE))
        applied = session.handle_message(_done(rid, 3))
        await asyncio.sleep(0.1)
        return host, session, applied

    host, session, applied = _run(scenario())
    assert not applied
    assert session.positions == {}
    # A new recompute covers the late item
    assert len(host.submitted[-1][0]) == 4


def test_progress_tracks_latest_request():
    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10)
        session.add_item(make_item("a", HOUSE))
        rid = session.recompute()
        session.handle_message(ProgressMessage(request_id=rid, iteration=11, total_iterations=50))
        session.handle_message(ProgressMessage(request_id=rid + 7, iteration=3, total_iterations=9))
        session.handle_message(LogMessage(request_id=rid, message="Epoch 11/50"))
        return session

    assert _run(scenario()).progress == (11, 50)


def test_incremental_placement_after_layout():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=10)
        for i, pixels in enumerate(_drawings(4)):
            session.add_item(make_item(f"d{i}", pixels))
        session.handle_message(_done(session.recompute(), 4))
        submitted = len(host.submitted)
        pos = session.add_item(make_item("new", SMILEY))
        return host, session, submitted, pos

    host, session, submitted, pos = _run(scenario())
    assert isinstance(pos, Position)
    assert session.positions["new"] == pos
    assert session.new_since_recompute == 1
    assert len(host.submitted) == submitted


def test_recompute_after_max_new_items():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(
            host,
            debounce_seconds=10,
            incremental_config=IncrementalConfig(max_new_items=2),
        )
        for i, pixels in enumerate(_drawings(4)):
            session.add_item(make_item(f"d{i}", pixels))
        session.handle_message(_done(session.recompute(), 4))
        placed = [session.add_item(make_item(f"n{i}", pixels)) for i, pixels in enumerate([HOUSE, SMILEY, PINWHEEL])]
        scheduled = session._timer is not None
        return placed, scheduled

    placed, scheduled = _run(scenario())
    assert placed[0] is not None
    assert placed[1] is not None
    assert placed[2] is None
    assert scheduled


def test_blank_item_triggers_recompute():
    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        session.handle_message(_done(session.recompute(), 3))
        pos = session.add_item(make_item("blank", BLANK))
        return pos, session._timer is not None

    pos, scheduled = _run(scenario())
    assert pos is None
    assert scheduled


def test_set_weights_clears_vector_cache():
    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10)
        item = make_item("a", HOUSE)
        session.add_item(item)
        before = session.vector_for(item)
        session.set_weights(FeatureWeights(color_histogram=2.0))
        after = session.vector_for(item)
        return before, after

    before, after = _run(scenario())
    np.testing.assert_allclose(after[:8], before[:8] * 2)
    np.testing.assert_allclose(after[8:], before[8:])


def test_tsne_session_uses_invariant_vectors():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, projector=TSNEConfig(), debounce_seconds=10)
        session.add_item(make_item("a", HOUSE))
        session.add_item(make_item("b", SMILEY))
        session.recompute()
        return host

    vectors, config = _run(scenario()).submitted[-1]
    assert isinstance(config, TSNEConfig)
    assert all(len(v) == 64 for v in vectors)


def test_remove_item():
    async def scenario():
        session = LayoutSession(RecordingHost(), debounce_seconds=10)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        session.handle_message(_done(session.recompute(), 3))
        session.remove_item("d1")
        session.remove_item("missing")
        return session

    session = _run(scenario())
    assert set(session.items) == {"d0", "d2"}
    assert set(session.positions) == {"d0", "d2"}


def test_empty_recompute_clears_positions():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=10)
        return session.recompute(), session.positions, host

    rid, positions, host = _run(scenario())
    assert rid is None
    assert positions == {}
    assert host.submitted == []


def test_invalid_layout_mode():
    with pytest.raises(ValueError):
        LayoutSession(RecordingHost(), layout_mode="grid")


def test_end_to_end_with_real_host():
    async def scenario():
        session = LayoutSession(ComputationHost(seed=0), projector=UMAPConfig(n_epochs=20), debounce_seconds=0.01)
        for i, pixels in enumerate(_drawings(10)):
            session.add_item(make_item(f"d{i}", pixels))
        await asyncio.sleep(0.05)
        await asyncio.wait_for(session.wait_for_layout(), timeout=60)
        session.host.terminate()
        return session

    session = _run(scenario())
    assert len(session.positions) == 10
    pts = np.array(list(session.positions.values()))
    assert np.all(np.isfinite(pts))
    assert session.progress is None


def test_host_terminate_reschedules_pending_recompute():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=0.01)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        first = session.recompute()
        host.terminate()
        state = (session.computing, session.progress, session._timer is not None)
        await asyncio.sleep(0.1)
        return host, session, first, state

    host, session, first, state = _run(scenario())
    assert state == (False, None, True)
    assert len(host.submitted) == 2
    assert session.computing
    assert first not in session._snapshots


def test_host_terminate_when_idle_schedules_nothing():
    async def scenario():
        host = RecordingHost()
        session = LayoutSession(host, debounce_seconds=10)
        for i, pixels in enumerate(_drawings(3)):
            session.add_item(make_item(f"d{i}", pixels))
        session.handle_message(_done(session.recompute(), 3))
        host.terminate()
        return session

    session = _run(scenario())
    assert session._timer is None
    assert len(session.positions) == 3


def test_layout_recovers_after_host_restart():
    async def scenario():
        host = ComputationHost(seed=0)
        session = LayoutSession(host, projector=UMAPConfig(n_epochs=10), debounce_seconds=0.01)
        for i, pixels in enumerate(_drawings(30)):
            session.add_item(make_item(f"d{i}", pixels))
        session.recompute()
        host.restart()
        await asyncio.wait_for(session.wait_for_layout(), timeout=60)
        host.terminate()
        return host, session

    host, session = _run(scenario())
    assert len(session.positions) == 30
    assert not session.computing
    assert session._snapshots == {}
    assert host.generation == 2


def test_timeline_incremental_item_enters_at_now_edge():
    now = datetime.now(timezone.utc)

    def drawn(item_id, pixels, minutes_ago):
        return Item(id=item_id, pixels=tuple(pixels), created_at=now - timedelta(minutes=minutes_ago))

    async def scenario():
        session = LayoutSession(RecordingHost(), layout_mode="timeline", debounce_seconds=10)
        for i, pixels in enumerate(_drawings(4)):
            session.add_item(drawn(f"d{i}", pixels, 60 - i * 10))
        session.handle_message(_done(session.recompute(), 4))
        return session, session.add_item(drawn("new", SMILEY, 0))

    session, pos = _run(scenario())
    assert pos is not None
    # 5 items -> spread 300, newest at +150
    assert pos.x == pytest.approx(150.0, abs=0.5)
