from pydantic import NonNegativeInt
from pydantic_settings import BaseSettings
import os


class Settings(BaseSettings):
    data_file: str = os.getenv("DATA_FILE", "./data/shared_data.json")
    window_size: int = int(os.getenv("WINDOW_SIZE", 29))
    smoothing: float = float(os.getenv("SMOOTHING", 1.0))
    prediction_model: str = os.getenv("PREDICTION_MODEL", "markov")
    top_k: NonNegativeInt | None = int(os.environ["TOP_K"]) if os.getenv("TOP_K") else None
    api_key: str | None = os.getenv("API_KEY")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_json: bool = os.getenv("LOG_JSON", "0").lower() in ("1", "true", "yes")

settings = Settings()
