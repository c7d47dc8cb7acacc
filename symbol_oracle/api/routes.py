from fastapi import APIRouter, Depends, HTTPException, Header, Request
from fastapi.responses import PlainTextResponse

from symbol_oracle.api.schemas import (
    BulkIn, BulkOut, ChatIn, PredictOut, ResetOut, StartOut, StatsOut, SymbolIn, SymbolOut, SymbolStatsOut,
)
from symbol_oracle.config import settings
from symbol_oracle.core.symbols import SYMBOLS, Symbol
from symbol_oracle.services import Prediction, SessionCoordinator

router = APIRouter()


def _auth(api_key_header: str | None = Header(default=None, alias="X-API-Key")):
    if settings.api_key and api_key_header != settings.api_key:
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_coordinator(request: Request) -> SessionCoordinator:
    return request.app.state.coordinator


def _symbol(s: Symbol) -> SymbolOut:
    return SymbolOut(index=s.index, icon=s.icon, name=s.name, multiplier=s.multiplier, label=s.label)


def _prediction(p: Prediction) -> PredictOut:
    return PredictOut(
        model=p.model.value,
        symbols=[_symbol(SYMBOLS[i]) for i in p.symbols],
        probabilities=p.probabilities,
    )


@router.get('/start', response_model=StartOut)
def start(coord: SessionCoordinator = Depends(get_coordinator)):
    return StartOut(text=coord.welcome_text(), prediction=_prediction(coord.predict()))

@router.get('/stats', response_model=StatsOut)
def stats(coord: SessionCoordinator = Depends(get_coordinator)):
    r = coord.stats()
    return StatsOut(
        correct_predictions=r.correct_predictions,
        total_predictions=r.total_predictions,
        accuracy=r.accuracy,
        total_observed=r.total_observed,
        window_fill=r.window_fill,
        window_size=r.window_size,
        symbols=[
            SymbolStatsOut(symbol=_symbol(ln.symbol), count=ln.count,
                           p_global=ln.p_global, p_window=ln.p_window, p_markov=ln.p_markov)
            for ln in r.lines
        ],
    )

@router.get('/stats/text', response_class=PlainTextResponse)
def stats_text(coord: SessionCoordinator = Depends(get_coordinator)):
    return coord.render_stats()

@router.get('/predict', response_model=PredictOut)
def predict(coord: SessionCoordinator = Depends(get_coordinator)):
    return _prediction(coord.predict())

@router.post('/confirm', response_model=PredictOut)
def confirm(data: SymbolIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    return _prediction(coord.confirm(data.symbol))

@router.get('/wrong', response_model=list[SymbolOut])
def wrong_choices(coord: SessionCoordinator = Depends(get_coordinator)):
    return [_symbol(s) for s in coord.mark_wrong()]

@router.post('/wrong', response_model=PredictOut)
def wrong(data: SymbolIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    return _prediction(coord.pick_actual(data.symbol))

@router.post('/bulk', response_model=BulkOut)
def bulk(data: BulkIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    recorded = coord.bulk_enter(data.text)
    return BulkOut(recorded=recorded, skipped=coord.engine.W - recorded, prediction=_prediction(coord.predict()))

@router.post('/reset', response_model=ResetOut)
def reset(data: ChatIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    coord.request_reset(data.chat_id)
    return ResetOut(chat_id=data.chat_id, status="pending")

@router.post('/reset/confirm', response_model=ResetOut)
def reset_confirm(data: ChatIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    coord.confirm_reset(data.chat_id)
    return ResetOut(chat_id=data.chat_id, status="done")

@router.post('/reset/cancel', response_model=ResetOut)
def reset_cancel(data: ChatIn, coord: SessionCoordinator = Depends(get_coordinator), ok=Depends(_auth)):
    cancelled = coord.cancel_reset(data.chat_id)
    return ResetOut(chat_id=data.chat_id, status="cancelled" if cancelled else "none")
