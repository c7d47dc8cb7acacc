import threading
from dataclasses import dataclass

import structlog

from symbol_oracle.analytics.engine import PredictionModel, StatisticsEngine
from symbol_oracle.analytics.ranking import top_k
from symbol_oracle.core.errors import ActionNotAllowed, InvalidSymbol, MalformedBatchInput
from symbol_oracle.core.symbols import SYMBOLS, Symbol
from symbol_oracle.core.validation import is_valid_symbol, parse_digits
from symbol_oracle.db.store import JsonFileStore

logger = structlog.get_logger()

DEFAULT_TOP_K = {
    PredictionModel.WINDOW_FREQUENCY: 4,
    PredictionModel.MARKOV_CHAIN: 3,
}


@dataclass
class Prediction:
    model: PredictionModel
    symbols: list[int]
    probabilities: list[float]


@dataclass
class SymbolLine:
    symbol: Symbol
    count: int
    p_global: float
    p_window: float
    p_markov: float


@dataclass
class StatsReport:
    correct_predictions: int
    total_predictions: int
    accuracy: float
    total_observed: int
    window_fill: int
    window_size: int
    lines: list[SymbolLine]


class SessionCoordinator:
    """Turns user actions into engine calls and builds the views shown back."""

    def __init__(self, engine: StatisticsEngine, model: PredictionModel = PredictionModel.MARKOV_CHAIN,
                 k: int | None = None):
        self.engine = engine
        self.model = PredictionModel(model)
        self.k = k if k is not None else DEFAULT_TOP_K[self.model]
        if self.k < 0:
            raise ValueError(f"top-k must be non-negative, got {self.k}")
        self._pending_resets: set[str] = set()
        self._resets_lock = threading.Lock()

    def _check(self, symbol):
        if not is_valid_symbol(symbol):
            raise InvalidSymbol(symbol)

    def predict(self) -> Prediction:
        dist = self.engine.distribution(self.model)
        ranked = top_k(dist, self.k)
        return Prediction(self.model, ranked, [dist[i] for i in ranked])

    def confirm(self, symbol: int) -> Prediction:
        self._check(symbol)
        self.engine.record_outcome(symbol, True)
        return self.predict()

    def mark_wrong(self) -> list[Symbol]:
        return list(SYMBOLS)

    def pick_actual(self, symbol: int) -> Prediction:
        self._check(symbol)
        self.engine.record_outcome(symbol, False)
        return self.predict()

    def handle_text(self, text: str) -> int | None:
        """Free text from a chat; None when it does not look like a bulk entry."""
        if len(parse_digits(text)) < 2:
            return None
        return self.bulk_enter(text)

    def bulk_enter(self, text: str) -> int:
        digits = parse_digits(text)
        if len(digits) != self.engine.W:
            raise MalformedBatchInput(self.engine.W, len(digits))
        return self.engine.record_symbol_batch(digits)

    # two-step reset, legacy mode only

    def request_reset(self, chat_id: str):
        if self.model is not PredictionModel.WINDOW_FREQUENCY:
            raise ActionNotAllowed("reset is only available with the window frequency model")
        with self._resets_lock:
            self._pending_resets.add(chat_id)

    def confirm_reset(self, chat_id: str):
        with self._resets_lock:
            if chat_id not in self._pending_resets:
                raise ActionNotAllowed("no reset was requested for this chat")
            # one wipe answers every outstanding request
            self._pending_resets.clear()
        self.engine.reset()
        logger.info("reset_confirmed", chat_id=chat_id)

    def cancel_reset(self, chat_id: str) -> bool:
        with self._resets_lock:
            if chat_id in self._pending_resets:
                self._pending_resets.discard(chat_id)
                return True
        return False

    # views

    def stats(self) -> StatsReport:
        snap = self.engine.snapshot()
        pg = self.engine.global_distribution()
        pw = self.engine.window_distribution()
        pm = self.engine.markov_distribution()
        lines = [
            SymbolLine(sym, snap.global_counts[sym.index], pg[sym.index], pw[sym.index], pm[sym.index])
            for sym in SYMBOLS
        ]
        total = snap.total_predictions
        return StatsReport(
            correct_predictions=snap.correct_predictions,
            total_predictions=total,
            accuracy=(snap.correct_predictions / total) if total else 0.0,
            total_observed=snap.total_observed,
            window_fill=len(snap.recent_window),
            window_size=self.engine.W,
            lines=lines,
        )

    def render_stats(self) -> str:
        r = self.stats()
        out = [
            "📊 Learning statistics",
            f"✅ Correct predictions: {r.correct_predictions}",
            f"🔮 Total predictions: {r.total_predictions}",
            f"📈 Accuracy: {r.accuracy * 100:.2f}%",
            "",
            "🎯 Current probabilities",
        ]
        for ln in r.lines:
            out.append(
                f"{ln.symbol.icon} {ln.symbol.multiplier}x | global: {ln.p_global * 100:.2f}%"
                f" | window: {ln.p_window * 100:.2f}% | markov: {ln.p_markov * 100:.2f}% | seen: {ln.count}"
            )
        out.append("")
        out.append(f"📊 Total rounds: {r.total_observed}")
        out.append(f"🔄 Last {r.window_fill} results in the window (max {r.window_size})")
        return "\n".join(out)

    def welcome_text(self) -> str:
        lines = [
            "👋 Welcome to the symbol oracle!",
            "",
            f"Every round I show the {self.k} most likely symbols.",
            "When the round ends, confirm the right one if it was among them,",
            "or mark the prediction wrong and pick the actual symbol.",
            f"You can also send the last {self.engine.W} results as digits 0-7 in one message.",
            "",
            "Commands:",
            "/stats - show statistics and current probabilities",
        ]
        if self.model is PredictionModel.WINDOW_FREQUENCY:
            lines.append("/reset - wipe all shared data")
        lines.append("/help - show these instructions")
        return "\n".join(lines)


def build_coordinator(cfg) -> SessionCoordinator:
    engine = StatisticsEngine(JsonFileStore(cfg.data_file), window=cfg.window_size, alpha=cfg.smoothing)
    return SessionCoordinator(engine, model=PredictionModel(cfg.prediction_model), k=cfg.top_k)
