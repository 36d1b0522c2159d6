"""
Figures for the R&D / ageing analysis.

  1. plotoldAgeDependency.jpeg  median old-age dependency by region (static)
  2. RdExpenditureChange.html   R&D expenditure by ageing category (interactive)
  3. PredPubs.html              predicted publications per million (interactive)
  4. PredRd.html                predicted researchers per million (interactive)

Static output uses matplotlib/seaborn; interactive output is plotly written
as self-contained HTML (plotly.js embedded).
"""

import math
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from matplotlib.colors import to_hex
import seaborn as sns
import plotly.graph_objects as go
from plotly.subplots import make_subplots

logger = logging.getLogger(__name__)

# ─── Style ──────────────────────────────────────────────────────────────────
# No 'savefig.bbox': tight here, the JPEG must keep its exact pixel size.
STYLE = {
    'font.size': 9, 'axes.titlesize': 10, 'axes.labelsize': 9,
    'figure.dpi': 100, 'savefig.dpi': 300,
}
plt.rcParams.update(STYLE)
sns.set_style('whitegrid')

STATIC_SIZE = (9, 6)  # inches
STATIC_DPI = 300

LINE_COLOR = 'steelblue'
RIBBON_FILL = 'rgba(159, 182, 205, 0.2)'  # slategray3 at 20%
STRIP_TEXT = 'snow'


def _ensure_parent(path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


def _facet_shape(n: int, nrow=None):
    """(rows, cols) for n panels; ncol = ceil(sqrt(n)) unless nrow is fixed."""
    if nrow:
        nrow = min(nrow, n)
        return nrow, math.ceil(n / nrow)
    ncol = math.ceil(math.sqrt(n))
    return math.ceil(n / ncol), ncol


def _write_html(fig, path) -> Path:
    path = _ensure_parent(path)
    fig.write_html(str(path), include_plotlyjs=True, full_html=True)
    logger.info(f"Saved {path}")
    return path


# ═════════════════════════════════════════════════════════════════════════════
# FIGURE 1: OLD-AGE DEPENDENCY BY REGION (STATIC JPEG)
# ═════════════════════════════════════════════════════════════════════════════

def plot_old_age_dependency(summary: pd.DataFrame, path,
                            value: str = 'oldAgeDependencyMedian') -> Path:
    """One panel per region, free scales, three rows."""
    path = _ensure_parent(path)
    regions = sorted(summary['region'].dropna().unique())
    if not regions:
        raise ValueError("No regions to plot")

    nrow, ncol = _facet_shape(len(regions), nrow=3)
    colors = dict(zip(regions, sns.color_palette('viridis', len(regions))))

    fig, axes = plt.subplots(nrow, ncol, figsize=STATIC_SIZE, squeeze=False)
    for ax, region in zip(axes.flat, regions):
        sub = summary[summary['region'] == region].sort_values('year')
        ax.plot(sub['year'], sub[value], color=colors[region], linewidth=1.5)
        ax.set_title(region)
        ax.set_xlabel('Year')
        ax.set_ylabel('Median Value for Age Dependency')
    for ax in axes.flat[len(regions):]:
        ax.set_visible(False)

    fig.text(0.99, 0.01, 'Data Source: World Bank', ha='right', va='bottom', fontsize=8)
    fig.tight_layout(rect=(0, 0.03, 1, 1))
    fig.savefig(path, dpi=STATIC_DPI, format='jpeg')
    plt.close(fig)
    logger.info(f"Saved {path}")
    return path


# ═════════════════════════════════════════════════════════════════════════════
# FIGURE 2: R&D EXPENDITURE CHANGE BY AGE CATEGORY (INTERACTIVE)
# ═════════════════════════════════════════════════════════════════════════════

def plot_expenditure_change(age_summary: pd.DataFrame, base: int, path,
                            step: int = 3) -> Path:
    """Line + points per ageing category, with 'Delta' labels every ``step`` years."""
    categories = list(pd.unique(age_summary['ageCategory'].dropna()))
    if hasattr(age_summary['ageCategory'], 'cat'):
        categories = [c for c in age_summary['ageCategory'].cat.categories if c in categories]
    cmap = matplotlib.colormaps['viridis']
    colors = [to_hex(cmap(v)) for v in np.linspace(0, 0.8, max(len(categories), 2))]

    fig = go.Figure()
    for color, cat in zip(colors, categories):
        sub = age_summary[age_summary['ageCategory'] == cat].sort_values('year')
        fig.add_trace(go.Scatter(
            x=sub['year'], y=sub['rdExpenditureMedian'],
            mode='lines+markers+text', name=str(cat),
            text=sub['label'], textposition='top center',
            line=dict(color=color), marker=dict(color=color),
            customdata=sub[['oldAgeDependencyMedian', 'changeInExpenditure']].values,
            hovertemplate=('Year: %{x}<br>R&D expenditure: %{y:.3f}'
                           '<br>Dependency median: %{customdata[0]:.2f}'
                           '<br>3-year change: %{customdata[1]:.2f}'
                           f'<extra>{cat}</extra>'),
        ))

    y = age_summary['rdExpenditureMedian']
    max_year = int(age_summary['year'].max())
    fig.update_layout(
        title='Change in R&D Expenditure Every Three Years',
        xaxis=dict(title='Year', tickmode='array',
                   tickvals=list(range(base, max_year + 1, step))),
        yaxis=dict(title='R&D Expenditure Median (USD per 1 Million)',
                   range=[y.min() * 0.9, y.max() * 1.1]),
        legend=dict(title='Old Age Dependency'),
        template='plotly_white',
    )
    return _write_html(fig, path)


# ═════════════════════════════════════════════════════════════════════════════
# FIGURES 3-4: PREDICTED VALUES BY REGION (INTERACTIVE)
# ═════════════════════════════════════════════════════════════════════════════

def plot_predictions(predictions: pd.DataFrame, path, y_title: str, title: str,
                     subtitle: str = 'Analyzing Trends Over Regions',
                     x_title: str = 'Aging Population Index') -> Path:
    """Facet per region: predicted line with confidence ribbon."""
    groups = sorted(predictions['group'].unique())
    nrow, ncol = _facet_shape(len(groups))

    fig = make_subplots(rows=nrow, cols=ncol, subplot_titles=groups,
                        shared_xaxes='all', shared_yaxes='all',
                        horizontal_spacing=0.05, vertical_spacing=0.12)

    for i, group in enumerate(groups):
        row, col = i // ncol + 1, i % ncol + 1
        sub = predictions[predictions['group'] == group].sort_values('x')
        x = sub['x'].values

        fig.add_trace(go.Scatter(
            x=np.concatenate([x, x[::-1]]),
            y=np.concatenate([sub['conf_high'].values, sub['conf_low'].values[::-1]]),
            fill='toself', fillcolor=RIBBON_FILL, line=dict(width=0),
            hoverinfo='skip', showlegend=False,
        ), row=row, col=col)
        fig.add_trace(go.Scatter(
            x=x, y=sub['predicted'], mode='lines',
            line=dict(color=LINE_COLOR), showlegend=False,
            customdata=sub[['conf_low', 'conf_high']].values,
            hovertemplate=('x: %{x:.2f}<br>predicted: %{y:.2f}'
                           '<br>95% CI: [%{customdata[0]:.2f}, %{customdata[1]:.2f}]'
                           f'<extra>{group}</extra>'),
        ), row=row, col=col)

    fig.for_each_annotation(lambda a: a.update(bgcolor=LINE_COLOR,
                                               font=dict(color=STRIP_TEXT)))
    fig.update_layout(
        title=dict(text=f"{title}<br><sup>{subtitle}</sup>"),
        template='plotly_white', showlegend=False,
    )
    for c in range(1, ncol + 1):
        fig.update_xaxes(title_text=x_title, row=nrow, col=c)
    for r in range(1, nrow + 1):
        fig.update_yaxes(title_text=y_title, row=r, col=1)

    return _write_html(fig, path)
