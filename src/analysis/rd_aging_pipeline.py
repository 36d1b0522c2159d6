"""
R&D Leadership Dynamics: Ageing Populations and Research Output
================================================================
Merges the V-Dem country-year panel with World Bank development indicators
and asks how old-age dependency relates to R&D effort by world region.

  1. Acquisition       V-Dem country-year file + WDI indicators (wbgapi)
  2. Harmonisation     V-Dem codes -> World Bank codes, left join on (iso3c, year)
  3. Derived metric    journal articles per million people
  4. Regional medians  per (region, year), 1996-2019
  5. Ageing classes    Jenks natural breaks (3) on old-age dependency
  6. Regression        outcome ~ dependency * region, marginal predictions
  7. Figures           1 static JPEG + 3 self-contained HTML charts

Output:
  output/plotoldAgeDependency.jpeg
  output/RdExpenditureChange.html
  output/PredPubs.html
  output/PredRd.html
  output/tables/  (only with --save-tables)

Usage:
  python src/analysis/rd_aging_pipeline.py
  python src/analysis/rd_aging_pipeline.py --vdem-csv data/V-Dem-CY-Full+Others-v14.csv
  python src/analysis/rd_aging_pipeline.py --output out --save-tables
"""

import sys
import json
import logging
import argparse
import warnings
from pathlib import Path
from datetime import datetime
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
import pandas as pd

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from analysis.settings import PipelineConfig
from analysis.country_codes import harmonize, unmapped_codes
from analysis.panel import build_panel, summarize_by_region
from analysis.age_categories import (
    filter_for_classification, assign_age_categories,
    summarize_by_age_category, base_year,
)
from analysis.marginal_effects import (
    fit_interaction_model, predict_by_group, model_summary,
)
from analysis import figures

warnings.filterwarnings('ignore', category=FutureWarning)

logger = logging.getLogger('rd_aging')

MODELS = {
    'pubs': {
        'outcome': 'outputPubsScaled',
        'artifact': 'pred_pubs',
        'y_title': 'Number of Publications per Million',
        'title': 'Predicted Impact of Aging Population on Publications',
    },
    'rd': {
        'outcome': 'researchersRD',
        'artifact': 'pred_rd',
        'y_title': 'Number of Researchers in R&D per Million',
        'title': 'Predicted Impact of Aging Population on Researchers in R&D',
    },
}


@dataclass
class PipelineResult:
    """Everything a run produced, for callers and tests."""

    panel: pd.DataFrame
    region_summary: pd.DataFrame
    age_summary: pd.DataFrame
    breaks: list
    fits: dict = field(default_factory=dict)
    predictions: dict = field(default_factory=dict)
    artifacts: dict = field(default_factory=dict)


def _json_default(obj):
    if isinstance(obj, (np.bool_, bool)):
        return bool(obj)
    if isinstance(obj, (np.integer,)):
        return int(obj)
    if isinstance(obj, (np.floating,)):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    return str(obj)


def _section(title: str):
    print(f"\n{'='*70}\n{title}\n{'='*70}")


# ═════════════════════════════════════════════════════════════════════════════
# STAGES
# ═════════════════════════════════════════════════════════════════════════════

def acquire(config: PipelineConfig):
    """Download (or read) both source panels. Failures abort the run."""
    from collectors.vdem_collector import load_vdem
    from collectors.wdi_collector import fetch_wdi

    vdem = load_vdem(config)
    wdi = fetch_wdi(mrv=config.wb_mrv)
    return vdem, wdi


def merge_sources(vdem: pd.DataFrame, wdi: pd.DataFrame) -> pd.DataFrame:
    """Harmonise V-Dem codes against the World Bank economies and join."""
    if 'iso3c' not in vdem.columns:
        vdem = harmonize(vdem, column='vDemCode',
                         known_codes=set(wdi['iso3c'].dropna()))
        missing = unmapped_codes(vdem)
        if missing:
            logger.info(f"{len(missing)} V-Dem units without a World Bank code: "
                        f"{', '.join(missing[:10])}{'...' if len(missing) > 10 else ''}")
    return build_panel(vdem, wdi)


def save_tables(result: PipelineResult, out_dir: Path):
    """Optional CSV/JSON export of intermediate tables and model summaries."""
    out_dir.mkdir(parents=True, exist_ok=True)
    result.region_summary.to_csv(out_dir / 'region_year_summary.csv', index=False)
    result.age_summary.to_csv(out_dir / 'age_category_summary.csv', index=False)
    for key, preds in result.predictions.items():
        preds.to_csv(out_dir / f'predictions_{key}.csv', index=False)

    summary = {
        'generated': datetime.now().isoformat(),
        'jenks_breaks': result.breaks,
        'models': {key: model_summary(fit) for key, fit in result.fits.items()},
    }
    with open(out_dir / 'model_results.json', 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2, ensure_ascii=False, default=_json_default)
    logger.info(f"Tables saved under {out_dir}")


# ═════════════════════════════════════════════════════════════════════════════
# MASTER PIPELINE
# ═════════════════════════════════════════════════════════════════════════════

def run_all(config: Optional[PipelineConfig] = None,
            vdem: Optional[pd.DataFrame] = None,
            wdi: Optional[pd.DataFrame] = None) -> PipelineResult:
    """
    Run every stage in order. ``vdem``/``wdi`` skip acquisition when given
    (``vdem`` may already carry an ``iso3c`` column).
    """
    config = config or PipelineConfig.from_env()
    start = datetime.now()
    print("=" * 70)
    print("R&D LEADERSHIP DYNAMICS: AGEING AND RESEARCH OUTPUT")
    print(f"Started: {start.strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 70)

    out_dir = Path(config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    # ── 1-2. Acquisition & merge ──────────────────────────────────────────
    _section("1. DATA ACQUISITION & MERGE")
    if vdem is None or wdi is None:
        fetched_vdem, fetched_wdi = acquire(config)
        vdem = fetched_vdem if vdem is None else vdem
        wdi = fetched_wdi if wdi is None else wdi
    rd = merge_sources(vdem, wdi)
    print(f"  {len(rd)} country-years, {rd['country'].nunique()} countries")

    # ── 3. Regional medians ───────────────────────────────────────────────
    _section(f"2. REGIONAL MEDIANS ({config.year_start + 1}-{config.year_end - 1})")
    region_summary = summarize_by_region(rd, config.year_start, config.year_end)
    print(f"  {len(region_summary)} region-years across "
          f"{region_summary['region'].nunique()} regions")

    # ── 4. Ageing categories ──────────────────────────────────────────────
    _section("3. AGEING CATEGORIES (JENKS NATURAL BREAKS)")
    classified = filter_for_classification(rd, config.year_start, config.year_end)
    classified, breaks = assign_age_categories(classified, config.n_age_classes)
    age_summary = summarize_by_age_category(classified, lag=config.change_lag,
                                            start=config.year_start + 1)
    base = base_year(config.year_start + 1, config.change_lag)
    print(f"  Breaks: {', '.join(f'{b:.2f}' for b in breaks)}")
    print(f"  {len(classified)} country-years classified; base year {base}")

    result = PipelineResult(panel=rd, region_summary=region_summary,
                            age_summary=age_summary, breaks=breaks)

    # ── 5. Regression & predictions ───────────────────────────────────────
    _section("4. INTERACTION MODELS & MARGINAL PREDICTIONS")
    for key, model in MODELS.items():
        fit = fit_interaction_model(rd, model['outcome'])
        result.fits[key] = fit
        result.predictions[key] = predict_by_group(
            fit, rd, model['outcome'], n_points=config.grid_points)
        print(f"  {model['outcome']:<18s} n={int(fit.nobs):>5d}  R²={fit.rsquared:.4f}")

    # ── 6. Figures ────────────────────────────────────────────────────────
    _section("5. FIGURES")
    result.artifacts['old_age'] = figures.plot_old_age_dependency(
        region_summary, config.artifact_path('old_age'))
    result.artifacts['rd_change'] = figures.plot_expenditure_change(
        age_summary, base, config.artifact_path('rd_change'), step=config.change_lag)
    for key, model in MODELS.items():
        result.artifacts[model['artifact']] = figures.plot_predictions(
            result.predictions[key], config.artifact_path(model['artifact']),
            y_title=model['y_title'], title=model['title'])
    for path in result.artifacts.values():
        print(f"  {path}")

    if config.save_tables:
        save_tables(result, out_dir / 'tables')

    elapsed = (datetime.now() - start).total_seconds()
    print(f"\n{'='*70}")
    print(f"COMPLETE: {elapsed:.1f}s")
    print(f"{'='*70}")
    return result


# ═════════════════════════════════════════════════════════════════════════════
# CLI Entry Point
# ═════════════════════════════════════════════════════════════════════════════

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Ageing populations and R&D output: V-Dem x World Bank analysis"
    )
    parser.add_argument("--output", "-o", help="Output directory for figures")
    parser.add_argument("--vdem-csv", help="Local V-Dem country-year CSV or ZIP")
    parser.add_argument("--mrv", type=int, help="World Bank most-recent-values window")
    parser.add_argument("--save-tables", action="store_true",
                        help="Also write summary tables and model results")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    config = PipelineConfig.from_env(
        output_dir=Path(args.output) if args.output else None,
        vdem_csv=Path(args.vdem_csv) if args.vdem_csv else None,
        wb_mrv=args.mrv,
        save_tables=args.save_tables or None,
    )
    run_all(config)


if __name__ == '__main__':
    main()
