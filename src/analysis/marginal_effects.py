"""
Interaction OLS models and marginal predictions.

    outcome ~ oldAgeDependency * C(region)

For each region the fitted model is evaluated over an evenly spaced grid of
old-age dependency values, with confidence bounds from the coefficient
covariance matrix (statsmodels get_prediction).
"""

import logging

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

logger = logging.getLogger(__name__)

TERM = 'oldAgeDependency'
GROUP = 'region'
GRID_POINTS = 50


def estimation_sample(data: pd.DataFrame, outcome: str, term: str = TERM,
                      by: str = GROUP) -> pd.DataFrame:
    """Complete cases for the model variables."""
    return data.dropna(subset=[outcome, term, by]).reset_index(drop=True)


def fit_interaction_model(data: pd.DataFrame, outcome: str, term: str = TERM,
                          by: str = GROUP):
    """
    OLS of ``outcome`` on ``term``, ``by`` (categorical) and their interaction.

    Fit errors (e.g. an empty sample) propagate to the caller.
    """
    sample = estimation_sample(data, outcome, term, by)
    formula = f'{outcome} ~ {term} * C({by})'
    fit = smf.ols(formula, data=sample).fit()
    logger.info(f"OLS {formula}: n={int(fit.nobs)}, R²={fit.rsquared:.4f}")
    return fit


def prediction_grid(values, n_points: int = GRID_POINTS) -> np.ndarray:
    """Evenly spaced grid over the observed range of ``values``."""
    x = np.asarray(values, dtype=float)
    x = x[~np.isnan(x)]
    return np.linspace(x.min(), x.max(), n_points)


def predict_by_group(fit, data: pd.DataFrame, outcome: str, term: str = TERM,
                     by: str = GROUP, n_points: int = GRID_POINTS,
                     alpha: float = 0.05) -> pd.DataFrame:
    """
    Predicted ``outcome`` with (1 - alpha) confidence bounds over the grid,
    once per level of ``by``.

    Columns: x, group, predicted, std_error, conf_low, conf_high.
    """
    sample = estimation_sample(data, outcome, term, by)
    grid = prediction_grid(sample[term], n_points)

    frames = []
    for level in sorted(sample[by].unique()):
        new = pd.DataFrame({term: grid, by: level})
        sf = fit.get_prediction(new).summary_frame(alpha=alpha)
        frames.append(pd.DataFrame({
            'x': grid,
            'group': level,
            'predicted': sf['mean'].values,
            'std_error': sf['mean_se'].values,
            'conf_low': sf['mean_ci_lower'].values,
            'conf_high': sf['mean_ci_upper'].values,
        }))
    return pd.concat(frames, ignore_index=True)


def model_summary(fit) -> dict:
    """Headline statistics for JSON export."""
    return {
        'formula': fit.model.formula,
        'n_obs': int(fit.nobs),
        'r_squared': round(float(fit.rsquared), 4),
        'adj_r_squared': round(float(fit.rsquared_adj), 4),
        'f_pvalue': float(fit.f_pvalue),
        'coefficients': {
            name: {
                'beta': round(float(fit.params[name]), 6),
                'se': round(float(fit.bse[name]), 6),
                'p': round(float(fit.pvalues[name]), 6),
            }
            for name in fit.params.index
        },
    }
