# hockey_xg/tracking.py
from pathlib import Path
from typing import Any, Dict

import pandas as pd
import wandb

from hockey_xg.config import WANDB_PROJECT


def start_run(name: str, config: Dict[str, Any], enabled: bool = True):
    """wandb run; with enabled=False it is a no-op run (mode="disabled")."""
    return wandb.init(
        project=WANDB_PROJECT,
        job_type="train",
        name=name,
        config=config,
        tags=["xg", "xgboost"],
        mode="online" if enabled else "disabled",
    )


def log_table(run, key: str, df: pd.DataFrame) -> None:
    run.log({key: wandb.Table(dataframe=df)})


def log_model(run, model_path: Path, extra_files=()) -> None:
    artifact = wandb.Artifact(name=model_path.stem, type="model",
                              description="xgboost xG model with fitted encoding")
    artifact.add_file(str(model_path))
    for p in extra_files:
        artifact.add_file(str(p))
    run.log_artifact(artifact)
