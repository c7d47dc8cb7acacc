import threading
from enum import Enum
from typing import Iterable

import structlog

from symbol_oracle.analytics.stats import smoothed, tally, uniform
from symbol_oracle.core.symbols import SYMBOL_COUNT
from symbol_oracle.core.validation import is_valid_symbol
from symbol_oracle.db.models import StatisticsSnapshot
from symbol_oracle.db.store import PersistenceStore

logger = structlog.get_logger()


class PredictionModel(str, Enum):
    WINDOW_FREQUENCY = "window"
    MARKOV_CHAIN = "markov"


class StatisticsEngine:
    """Frequency, sliding-window and first-order Markov statistics.

    The engine owns a single snapshot. Every mutation happens on a copy under
    the lock, is saved, and only then replaces the live snapshot: if the
    store raises, the in-memory state stays as it was.
    """

    def __init__(self, store: PersistenceStore, window: int = 29, alpha: float = 1.0):
        if window < 1:
            raise ValueError("window must be at least 1")
        self.store = store
        self.W = window
        self.a = alpha
        self.n = SYMBOL_COUNT
        self._lock = threading.RLock()
        self._snap = self._trim(store.load())

    def _trim(self, snap: StatisticsSnapshot) -> StatisticsSnapshot:
        if len(snap.recent_window) > self.W:
            logger.warning("snapshot_repaired", field="recent_window", stored=len(snap.recent_window), kept=self.W)
            snap.recent_window = snap.recent_window[-self.W:]
        return snap

    def _commit(self, snap: StatisticsSnapshot):
        self.store.save(snap)
        self._snap = snap

    def _push(self, snap: StatisticsSnapshot, y: int):
        buf = snap.recent_window
        if buf:
            snap.transition_counts[buf[-1]][y] += 1
        snap.global_counts[y] += 1
        buf.append(y)
        if len(buf) > self.W:
            del buf[0]
        snap.total_observed += 1

    # -- updates --

    def record_symbol(self, symbol: int) -> bool:
        if not is_valid_symbol(symbol, self.n):
            logger.warning("symbol_rejected", symbol=symbol)
            return False
        with self._lock:
            snap = self._snap.model_copy(deep=True)
            self._push(snap, symbol)
            self._commit(snap)
        return True

    def record_symbol_batch(self, symbols: Iterable[int]) -> int:
        """Record symbols in order and save once; returns how many were valid."""
        recorded = skipped = 0
        with self._lock:
            snap = self._snap.model_copy(deep=True)
            for y in symbols:
                if not is_valid_symbol(y, self.n):
                    logger.warning("symbol_rejected", symbol=y, batch=True)
                    skipped += 1
                    continue
                self._push(snap, y)
                recorded += 1
            self._commit(snap)
        logger.info("batch_recorded", recorded=recorded, skipped=skipped)
        return recorded

    def reset(self):
        with self._lock:
            self._commit(StatisticsSnapshot())
        logger.info("statistics_reset")

    def record_feedback(self, was_top_prediction: bool):
        with self._lock:
            snap = self._snap.model_copy(deep=True)
            snap.total_predictions += 1
            if was_top_prediction:
                snap.correct_predictions += 1
            self._commit(snap)
        logger.info("feedback_recorded", correct=was_top_prediction)

    def record_outcome(self, symbol: int, was_top_prediction: bool) -> bool:
        """Feedback and the observed symbol as one update with one save."""
        if not is_valid_symbol(symbol, self.n):
            logger.warning("symbol_rejected", symbol=symbol)
            return False
        with self._lock:
            snap = self._snap.model_copy(deep=True)
            snap.total_predictions += 1
            if was_top_prediction:
                snap.correct_predictions += 1
            self._push(snap, symbol)
            self._commit(snap)
        logger.info("feedback_recorded", correct=was_top_prediction, symbol=symbol)
        return True

    # -- reads --

    def snapshot(self) -> StatisticsSnapshot:
        with self._lock:
            return self._snap.model_copy(deep=True)

    def global_distribution(self) -> list[float]:
        with self._lock:
            if self._snap.total_observed == 0:
                return uniform(self.n)
            return smoothed(self._snap.global_counts, self.a)

    def window_distribution(self) -> list[float]:
        with self._lock:
            buf = self._snap.recent_window
            if not buf:
                return uniform(self.n)
            return smoothed(tally(buf, self.n), self.a)

    def markov_distribution(self) -> list[float]:
        with self._lock:
            buf = self._snap.recent_window
            if not buf:
                return self.window_distribution()
            row = self._snap.transition_counts[buf[-1]]
            if sum(row) == 0:
                return self.window_distribution()
            return smoothed(row, self.a)

    def distribution(self, model: PredictionModel) -> list[float]:
        if model is PredictionModel.MARKOV_CHAIN:
            return self.markov_distribution()
        return self.window_distribution()
