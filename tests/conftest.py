import numpy as np
import pandas as pd
import pytest


def make_sources(regions=('Africa', 'Asia'), years=(2000, 2001, 2002),
                 n_countries=5, seed=0):
    """Synthetic V-Dem and WDI frames: len(regions) x n_countries units x years."""
    rng = np.random.default_rng(seed)
    vdem_rows, wdi_rows = [], []
    ctry_id = 1
    for r, region in enumerate(regions):
        for c in range(n_countries):
            code = f"Q{r}{c}"
            for year in years:
                vdem_rows.append({
                    'vDemCtryId': ctry_id,
                    'vDemCode': code,
                    'country': f"Country {code}",
                    'region': region,
                    'year': year,
                })
                dependency = 5 + 10 * r + 2 * c + rng.normal(0, 1)
                pop = float(rng.integers(1_000_000, 50_000_000))
                wdi_rows.append({
                    'iso3c': code,
                    'country': f"WB name {code}",
                    'year': year,
                    'popTotal': pop,
                    'gdp': pop * rng.uniform(1_000, 40_000),
                    'oldAgeDependency': dependency,
                    'rdExpenditure': 0.2 + 0.05 * dependency + rng.normal(0, 0.1),
                    'researchersRD': 300 + 40 * dependency + rng.normal(0, 50),
                    'outputPubs': pop / 1e6 * (100 + 20 * dependency + rng.normal(0, 10)),
                })
            ctry_id += 1
    return pd.DataFrame(vdem_rows), pd.DataFrame(wdi_rows)


@pytest.fixture
def sources():
    """(vdem, wdi) for 2 regions x 5 countries x 3 years."""
    return make_sources()


@pytest.fixture
def interaction_data():
    """Exact linear data with a region-specific slope, plus small noise."""
    rng = np.random.default_rng(42)
    rows = []
    for region, (a, b) in {'Africa': (10.0, 2.0), 'Asia': (4.0, 5.0),
                           'the West': (-3.0, 8.0)}.items():
        x = rng.uniform(5, 40, 60)
        y = a + b * x + rng.normal(0, 1.5, len(x))
        rows.append(pd.DataFrame({'oldAgeDependency': x, 'region': region, 'y': y}))
    return pd.concat(rows, ignore_index=True)
