from pydantic import Field
from pydantic_settings import SettingsConfigDict
from .base import EnvConfig


class PipelineConfig(EnvConfig):
    # Whole-run deadline, quote retries included
    deadline_seconds: float = 300.0

    # Share of pairs allowed to fail in Phase 3 before the run is aborted.
    # 0.0 -> any ledger failure aborts the run.
    max_pair_failure_ratio: float = Field(default=0.0, ge=0.0, le=1.0)

    output_dir: str = "build"

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        case_sensitive=False,
        extra="ignore",
    )
