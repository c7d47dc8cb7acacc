import pytest

from symbol_oracle.analytics.engine import PredictionModel
from symbol_oracle.core.errors import ActionNotAllowed, InvalidSymbol, MalformedBatchInput
from symbol_oracle.core.symbols import SYMBOLS
from symbol_oracle.services import SessionCoordinator, build_coordinator


@pytest.fixture
def markov(engine):
    return SessionCoordinator(engine, model=PredictionModel.MARKOV_CHAIN)


@pytest.fixture
def legacy(engine):
    return SessionCoordinator(engine, model=PredictionModel.WINDOW_FREQUENCY)


def test_default_top_k_per_model(markov, legacy):
    assert len(markov.predict().symbols) == 3
    assert len(legacy.predict().symbols) == 4


def test_top_k_override(engine):
    coord = SessionCoordinator(engine, model="markov", k=5)
    assert coord.model is PredictionModel.MARKOV_CHAIN
    assert len(coord.predict().symbols) == 5


def test_predict_on_empty_state(markov):
    p = markov.predict()
    assert p.symbols == [0, 1, 2]
    assert p.probabilities == [0.125] * 3


def test_legacy_ranks_by_window(legacy):
    for y in (6, 6, 6, 2, 2, 4):
        legacy.engine.record_symbol(y)
    assert legacy.predict().symbols == [6, 2, 4, 0]


def test_markov_ranks_by_transitions(markov):
    for y in (1, 3, 1, 3, 1, 5, 1):
        markov.engine.record_symbol(y)
    # after 1 came 3 twice and 5 once
    assert markov.predict().symbols[:2] == [3, 5]


def test_confirm_records_feedback_and_symbol(markov):
    markov.confirm(4)
    snap = markov.engine.snapshot()
    assert snap.correct_predictions == 1
    assert snap.total_predictions == 1
    assert snap.global_counts[4] == 1


def test_pick_actual_counts_a_miss(markov):
    choices = markov.mark_wrong()
    assert [s.index for s in choices] == list(range(8))
    markov.pick_actual(7)
    snap = markov.engine.snapshot()
    assert snap.correct_predictions == 0
    assert snap.total_predictions == 1
    assert snap.recent_window == [7]


def test_invalid_action_symbol_changes_nothing(markov):
    with pytest.raises(InvalidSymbol):
        markov.confirm(8)
    with pytest.raises(InvalidSymbol):
        markov.pick_actual(-1)
    snap = markov.engine.snapshot()
    assert snap.total_predictions == 0 and snap.total_observed == 0


def test_bulk_enter_exact_window(markov, store):
    text = " ".join(str(i % 8) for i in range(29))
    assert markov.bulk_enter(text) == 29
    assert markov.engine.snapshot().total_observed == 29
    assert store.saves == 1


def test_bulk_enter_skips_invalid_digit(markov):
    text = "9" + "0123456" * 4
    assert markov.bulk_enter(text) == 28


def test_bulk_enter_wrong_length(markov, store):
    with pytest.raises(MalformedBatchInput) as e:
        markov.bulk_enter("0123")
    assert e.value.expected == 29 and e.value.got == 4
    assert markov.engine.snapshot().total_observed == 0
    assert store.saves == 0


def test_handle_text_needs_two_digits(markov):
    assert markov.handle_text("hello") is None
    assert markov.handle_text("round 5") is None
    with pytest.raises(MalformedBatchInput):
        markov.handle_text("55")
    assert markov.handle_text("1" * 29) == 29


def test_reset_flow(legacy):
    legacy.engine.record_symbol(1)
    with pytest.raises(ActionNotAllowed):
        legacy.confirm_reset("chat-1")
    legacy.request_reset("chat-1")
    assert legacy.cancel_reset("chat-1") is True
    assert legacy.cancel_reset("chat-1") is False
    legacy.request_reset("chat-1")
    legacy.confirm_reset("chat-1")
    assert legacy.engine.snapshot().total_observed == 0


def test_reset_is_per_chat(legacy):
    legacy.engine.record_symbol(1)
    legacy.request_reset("a")
    with pytest.raises(ActionNotAllowed):
        legacy.confirm_reset("b")
    assert legacy.engine.snapshot().total_observed == 1


def test_reset_not_allowed_in_markov_mode(markov):
    with pytest.raises(ActionNotAllowed):
        markov.request_reset("chat-1")


def test_stats_report(markov):
    markov.confirm(2)
    markov.pick_actual(2)
    r = markov.stats()
    assert r.accuracy == 0.5
    assert r.total_observed == 2
    assert r.window_fill == 2 and r.window_size == 29
    assert [ln.symbol for ln in r.lines] == list(SYMBOLS)
    assert r.lines[2].count == 2
    assert abs(sum(ln.p_global for ln in r.lines) - 1.0) < 1e-9


def test_render_stats(markov):
    markov.confirm(2)
    text = markov.render_stats()
    assert "Accuracy: 100.00%" in text
    assert "Total rounds: 1" in text
    assert "Last 1 results in the window (max 29)" in text
    assert text.count("| seen:") == 8


def test_welcome_mentions_reset_only_in_legacy(markov, legacy):
    assert "/reset" not in markov.welcome_text()
    assert "/reset" in legacy.welcome_text()


def test_build_coordinator(tmp_path):
    class Cfg:
        data_file = str(tmp_path / "data" / "shared_data.json")
        window_size = 10
        smoothing = 1.0
        prediction_model = "window"
        top_k = None

    coord = build_coordinator(Cfg)
    assert coord.model is PredictionModel.WINDOW_FREQUENCY
    assert coord.k == 4
    assert coord.engine.W == 10


def test_negative_top_k_rejected(engine):
    with pytest.raises(ValueError):
        SessionCoordinator(engine, model=PredictionModel.MARKOV_CHAIN, k=-1)


def test_negative_top_k_setting_rejected(monkeypatch):
    from pydantic import ValidationError

    from symbol_oracle.config import Settings

    monkeypatch.setenv("TOP_K", "-2")
    with pytest.raises(ValidationError):
        Settings()


def test_confirm_saves_feedback_and_symbol_together(markov, store):
    markov.confirm(3)
    markov.pick_actual(4)
    assert store.saves == 2
    assert store.load() == markov.engine.snapshot()


def test_failed_save_leaves_no_orphan_feedback(tmp_path):
    from symbol_oracle.analytics.engine import StatisticsEngine
    from symbol_oracle.core.errors import PersistenceWriteError
    from symbol_oracle.db.store import JsonFileStore

    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    coord = SessionCoordinator(StatisticsEngine(JsonFileStore(blocker / "s.json")))
    with pytest.raises(PersistenceWriteError):
        coord.confirm(1)
    assert coord.engine.snapshot().total_predictions == 0


def test_confirmed_reset_clears_other_requests(legacy):
    legacy.request_reset("a")
    legacy.request_reset("b")
    legacy.confirm_reset("a")
    legacy.engine.record_symbol(2)
    with pytest.raises(ActionNotAllowed):
        legacy.confirm_reset("b")
    assert legacy.engine.snapshot().total_observed == 1


def test_concurrent_reset_requests(legacy):
    import threading

    threads = [threading.Thread(target=legacy.request_reset, args=(f"chat-{i}",)) for i in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert all(legacy.cancel_reset(f"chat-{i}") for i in range(20))
    assert not any(legacy.cancel_reset(f"chat-{i}") for i in range(20))
