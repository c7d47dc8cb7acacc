from pydantic import BaseModel, Field


class SymbolIn(BaseModel):
    symbol: int


class BulkIn(BaseModel):
    text: str


class ChatIn(BaseModel):
    chat_id: str = Field(default="default", min_length=1)


class SymbolOut(BaseModel):
    index: int
    icon: str
    name: str
    multiplier: int
    label: str


class PredictOut(BaseModel):
    model: str
    symbols: list[SymbolOut]
    probabilities: list[float]


class StartOut(BaseModel):
    text: str
    prediction: PredictOut


class SymbolStatsOut(BaseModel):
    symbol: SymbolOut
    count: int
    p_global: float
    p_window: float
    p_markov: float


class StatsOut(BaseModel):
    correct_predictions: int
    total_predictions: int
    accuracy: float
    total_observed: int
    window_fill: int
    window_size: int
    symbols: list[SymbolStatsOut]


class BulkOut(BaseModel):
    recorded: int
    skipped: int
    prediction: PredictOut


class ResetOut(BaseModel):
    chat_id: str
    status: str
