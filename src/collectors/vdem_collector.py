"""
V-Dem Country-Year Collector
============================

Loads the V-Dem country-year dataset and keeps the identifiers needed for
the merge with the World Bank panel:

    country_id, country_text_id, country_name, e_regionpol_6C, year

Source, in order of preference:
  1. a local CSV or ZIP (config.vdem_csv / VDEM_CSV)
  2. the V-Dem archive at config.vdem_url, downloaded once into the cache

The full V-Dem file has ~4,600 columns; only the five above are parsed.
"""

import io
import logging
import zipfile
from pathlib import Path

import pandas as pd

from collectors.http_client import CachedHTTPClient, DownloadConfig
from analysis.country_codes import REGION_LABELS

logger = logging.getLogger(__name__)

VDEM_COLUMNS = ['country_id', 'country_text_id', 'country_name',
                'e_regionpol_6C', 'year']

RENAME = {
    'country_id': 'vDemCtryId',
    'country_text_id': 'vDemCode',
    'country_name': 'country',
    'e_regionpol_6C': 'region',
}


def _read_csv_columns(handle) -> pd.DataFrame:
    raw = pd.read_csv(handle, usecols=lambda c: c in VDEM_COLUMNS, low_memory=False)
    missing = [c for c in VDEM_COLUMNS if c not in raw.columns]
    if missing:
        raise KeyError(f"V-Dem file: missing required columns {missing}")
    return raw[VDEM_COLUMNS]


def read_vdem_file(path: Path) -> pd.DataFrame:
    """Read the V-Dem country-year table from a CSV or a ZIP holding one."""
    path = Path(path)
    logger.info(f"Reading V-Dem data from {path}")

    if zipfile.is_zipfile(path):
        with zipfile.ZipFile(path) as zf:
            members = [m for m in zf.namelist()
                       if m.lower().endswith('.csv') and not m.startswith('__MACOSX')]
            if not members:
                raise KeyError(f"{path}: archive contains no CSV file")
            # The country-year file is the largest CSV in the release archive
            member = max(members, key=lambda m: zf.getinfo(m).file_size)
            logger.info(f"  using archive member {member}")
            with zf.open(member) as f:
                return _read_csv_columns(io.TextIOWrapper(f, encoding='utf-8'))

    return _read_csv_columns(path)


def prepare_vdem(raw: pd.DataFrame) -> pd.DataFrame:
    """Rename identifiers and recode e_regionpol_6C into region labels."""
    df = raw[VDEM_COLUMNS].rename(columns=RENAME).copy()
    df['year'] = pd.to_numeric(df['year'], errors='coerce')
    df = df.dropna(subset=['year'])
    df['year'] = df['year'].astype(int)
    df['region'] = pd.to_numeric(df['region'], errors='coerce').map(REGION_LABELS)
    return df[['vDemCtryId', 'vDemCode', 'country', 'region', 'year']].reset_index(drop=True)


def load_vdem(config) -> pd.DataFrame:
    """Load and prepare the V-Dem panel according to a PipelineConfig."""
    if config.vdem_csv is not None:
        path = Path(config.vdem_csv)
        if not path.exists():
            raise FileNotFoundError(f"V-Dem file not found: {path}")
    else:
        client = CachedHTTPClient(DownloadConfig(cache_dir=Path(config.cache_dir)))
        path = client.download(config.vdem_url, suffix='.zip')

    df = prepare_vdem(read_vdem_file(path))
    logger.info(f"V-Dem: {len(df)} country-years, {df['vDemCtryId'].nunique()} units, "
                f"{int(df['year'].min())}-{int(df['year'].max())}")
    return df
