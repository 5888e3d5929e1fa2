"""FastAPI service exposing the tempo estimator.

Clients POST mono samples (already decoded and down-mixed) to `/analyse`
and receive the estimated bpm. Each request builds its own estimator.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import EstimatorConfig
from .errors import SimpleBpmError
from .estimator import SimpleEstimator

logger = logging.getLogger(__name__)

_DEFAULT = EstimatorConfig()


class AnalyseModel(BaseModel):
    samples: list[float]
    sample_rate: float = Field(_DEFAULT.sample_rate, gt=0)
    accuracy: Optional[int] = Field(None, ge=0, le=2)
    lower_bpm: Optional[float] = Field(None, gt=0)
    upper_bpm: Optional[float] = Field(None, gt=0)
    stride: Optional[int] = Field(None, ge=1)
    steps: Optional[int] = Field(None, ge=1, le=20000)
    samples_per_candidate: Optional[int] = Field(None, ge=1, le=65536)
    seed: Optional[int] = None

    def to_config(self) -> EstimatorConfig:
        base = (
            EstimatorConfig.with_accuracy(self.accuracy)
            if self.accuracy is not None
            else EstimatorConfig()
        )
        changes = self.model_dump(
            include={"lower_bpm", "upper_bpm", "stride", "steps", "samples_per_candidate"},
            exclude_none=True,
        )
        return base.replace(sample_rate=self.sample_rate, **changes)


class AnalyseResult(BaseModel):
    bpm: float
    envelope_length: int
    interval: float


def make_app() -> FastAPI:
    app = FastAPI(title="simple-bpm", version="0.1.0")

    @app.get("/health")
    async def health() -> dict[str, str]:  # pragma: no cover - trivial
        return {"status": "ok"}

    @app.post("/analyse", response_model=AnalyseResult)
    def analyse(payload: AnalyseModel) -> AnalyseResult:
        # Plain def: FastAPI runs it in its threadpool.
        try:
            estimator = SimpleEstimator(payload.to_config(), seed=payload.seed)
            bpm = estimator.analyse(payload.samples)
        except SimpleBpmError as e:
            logger.warning("Rejected analyse request: %s", e)
            raise HTTPException(status_code=422, detail=str(e)) from e
        result = estimator.last_result
        assert result is not None
        return AnalyseResult(
            bpm=bpm,
            envelope_length=len(payload.samples) // estimator.config.stride,
            interval=result.interval,
        )

    return app


app = make_app()


def main() -> None:  # pragma: no cover - manual run helper
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    uvicorn.run(app, host="127.0.0.1", port=8000)


if __name__ == "__main__":  # pragma: no cover
    main()
