from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, StrictInt, field_validator, model_validator
import structlog

from symbol_oracle.core.symbols import SYMBOL_COUNT

logger = structlog.get_logger()


def zero_counts() -> list[int]:
    return [0] * SYMBOL_COUNT


def zero_matrix() -> list[list[int]]:
    return [[0] * SYMBOL_COUNT for _ in range(SYMBOL_COUNT)]


class StatisticsSnapshot(BaseModel):
    """Everything the engine knows, persisted as one JSON document.

    Field aliases are the on-disk keys. Each field is validated on its own:
    a bad value falls back to that field's default instead of failing the
    whole document, so a partially corrupt file still recovers what it can.
    """

    model_config = ConfigDict(populate_by_name=True)

    global_counts: list[NonNegativeInt] = Field(default_factory=zero_counts, alias="allCounts")
    recent_window: list[StrictInt] = Field(default_factory=list, alias="recent")
    total_observed: NonNegativeInt = Field(default=0, alias="totalAll")
    correct_predictions: NonNegativeInt = Field(default=0, alias="correctPredictions")
    total_predictions: NonNegativeInt = Field(default=0, alias="totalPredictions")
    # absent from files written before the Markov model existed
    transition_counts: list[list[NonNegativeInt]] = Field(default_factory=zero_matrix, alias="transitionCounts")

    @field_validator("*", mode="wrap")
    @classmethod
    def _recover_field(cls, value, handler, info):
        try:
            value = handler(value)
            _check_shape(info.field_name, value)
        except ValueError as e:
            logger.warning("snapshot_field_invalid", field=info.field_name, error=str(e))
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    @model_validator(mode="after")
    def _repair_totals(self):
        counted = sum(self.global_counts)
        if self.total_observed != counted:
            logger.warning("snapshot_repaired", field="total_observed", stored=self.total_observed, counted=counted)
            self.total_observed = counted
        if self.correct_predictions > self.total_predictions:
            logger.warning(
                "snapshot_repaired",
                field="correct_predictions",
                stored=self.correct_predictions,
                total_predictions=self.total_predictions,
            )
            self.correct_predictions = self.total_predictions
        return self

    def to_document(self) -> dict:
        return self.model_dump(by_alias=True)


def _check_shape(field: str, value) -> None:
    if field == "global_counts" and len(value) != SYMBOL_COUNT:
        raise ValueError(f"expected {SYMBOL_COUNT} counts, got {len(value)}")
    if field == "recent_window" and any(not 0 <= s < SYMBOL_COUNT for s in value):
        raise ValueError("window holds a symbol out of range")
    if field == "transition_counts" and (
        len(value) != SYMBOL_COUNT or any(len(row) != SYMBOL_COUNT for row in value)
    ):
        raise ValueError(f"expected a {SYMBOL_COUNT}x{SYMBOL_COUNT} matrix")
