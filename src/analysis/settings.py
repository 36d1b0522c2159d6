"""
Pipeline configuration.

Defaults live on PipelineConfig; a ``.env`` file or the environment can
override them:

    RD_OUTPUT_DIR   output directory for charts (default: ./output)
    RD_CACHE_DIR    download cache (default: ./data/cache)
    VDEM_CSV        local V-Dem country-year CSV or ZIP (skips the download)
    VDEM_URL        V-Dem archive URL
    WB_MRV          most-recent-values window for World Bank queries
    RD_GRID_POINTS  number of grid points for marginal predictions
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

DEFAULT_VDEM_URL = (
    "https://v-dem.net/media/datasets/V-Dem-CY-FullOthers-v14_csv.zip"
)

# Output artifact names
FIG_OLD_AGE = "plotoldAgeDependency.jpeg"
FIG_RD_CHANGE = "RdExpenditureChange.html"
FIG_PRED_PUBS = "PredPubs.html"
FIG_PRED_RD = "PredRd.html"


@dataclass
class PipelineConfig:
    """Settings for one pipeline run."""

    output_dir: Path = Path("./output")
    cache_dir: Path = Path("./data/cache")

    vdem_csv: Optional[Path] = None
    vdem_url: str = DEFAULT_VDEM_URL

    wb_mrv: int = 50

    # Summary window: start < year < end
    year_start: int = 1995
    year_end: int = 2020

    n_age_classes: int = 3
    change_lag: int = 3
    grid_points: int = 50

    save_tables: bool = False

    artifacts: dict = field(default_factory=lambda: {
        'old_age': FIG_OLD_AGE,
        'rd_change': FIG_RD_CHANGE,
        'pred_pubs': FIG_PRED_PUBS,
        'pred_rd': FIG_PRED_RD,
    })

    def artifact_path(self, key: str) -> Path:
        return Path(self.output_dir) / self.artifacts[key]

    @classmethod
    def from_env(cls, dotenv_path=None, **overrides) -> "PipelineConfig":
        """Build a config from ``.env`` / environment, then apply overrides."""
        load_dotenv(dotenv_path)

        values = {}
        if os.getenv("RD_OUTPUT_DIR"):
            values['output_dir'] = Path(os.getenv("RD_OUTPUT_DIR"))
        if os.getenv("RD_CACHE_DIR"):
            values['cache_dir'] = Path(os.getenv("RD_CACHE_DIR"))
        if os.getenv("VDEM_CSV"):
            values['vdem_csv'] = Path(os.getenv("VDEM_CSV"))
        if os.getenv("VDEM_URL"):
            values['vdem_url'] = os.getenv("VDEM_URL")
        if os.getenv("WB_MRV"):
            values['wb_mrv'] = int(os.getenv("WB_MRV"))
        if os.getenv("RD_GRID_POINTS"):
            values['grid_points'] = int(os.getenv("RD_GRID_POINTS"))

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
