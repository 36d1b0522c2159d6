"""
Country code harmonisation: V-Dem -> World Bank.

V-Dem's ``country_text_id`` is ISO 3166-1 alpha-3 for nearly every
present-day country, which is also what the World Bank uses for its
economies. The tables below cover the exceptions:

  - WB_OVERRIDES: V-Dem code whose World Bank code differs
  - NO_WB_EQUIVALENT: historical polities and sub-national units that the
    World Bank does not report on

Unmappable codes return None (soft failure): those rows stay in the panel
and simply find no World Bank match when merged.
"""

import pandas as pd

# ─── Region recode for V-Dem e_regionpol_6C ────────────────────────────────
REGION_LABELS = {
    1: 'Eastern Europe',
    2: 'Latin America',
    3: 'Middle East',
    4: 'Africa',
    5: 'the West',
    6: 'Asia',
}

# ─── V-Dem codes that differ from the World Bank's ─────────────────────────
WB_OVERRIDES = {
    'ROM': 'ROU',   # Romania (legacy alpha-3)
    'ZAR': 'COD',   # Zaire / DR Congo
    'TMP': 'TLS',   # East Timor (legacy)
    'KSV': 'XKX',   # Kosovo
    'KOS': 'XKX',
}

# ─── V-Dem units with no World Bank economy ────────────────────────────────
NO_WB_EQUIVALENT = {
    # Sub-national / contested units
    'PSG',  # Palestine/Gaza (the World Bank reports West Bank and Gaza as PSE)
    'SML',  # Somaliland
    'ZZB',  # Zanzibar
    'TWN',  # Taiwan is not a World Bank economy
    # Historical polities
    'DDR',  # German Democratic Republic
    'YMD',  # South Yemen
    'VDR',  # Republic of Vietnam
    'BAD', 'BAV', 'BRU', 'HAM', 'HAN', 'HES', 'HSD', 'MEC', 'NAS', 'OLD',
    'SAX', 'WUR',  # German states
    'MOD', 'PMA', 'PAP', 'PIE', 'SIC', 'TUS',  # Italian states
    'NFL',  # Newfoundland
    'ORS',  # Orange Free State
    'TRA',  # Transvaal
    'AUH',  # Austria-Hungary
}


def to_wb_code(code, known_codes=None):
    """
    Map a single V-Dem text code to its World Bank code.

    Returns None when the code is missing, has no World Bank counterpart,
    or (when ``known_codes`` is given) is not among the known economies.
    """
    if code is None or (not isinstance(code, str) and pd.isna(code)):
        return None
    code = str(code).strip().upper()
    if not code or code in NO_WB_EQUIVALENT:
        return None
    wb = WB_OVERRIDES.get(code, code)
    if known_codes is not None and wb not in known_codes:
        return None
    return wb


def harmonize(frame: pd.DataFrame, column: str = 'vDemCode',
              known_codes=None, target: str = 'iso3c') -> pd.DataFrame:
    """Add a World Bank code column; unmappable rows keep a missing key."""
    out = frame.copy()
    known = set(known_codes) if known_codes is not None else None
    mapping = {c: to_wb_code(c, known) for c in out[column].dropna().unique()}
    out[target] = out[column].map(mapping).astype(object)
    out.loc[out[target].isna(), target] = None
    return out


def unmapped_codes(frame: pd.DataFrame, column: str = 'vDemCode',
                   target: str = 'iso3c') -> list:
    """Source codes that found no World Bank code (for diagnostics)."""
    missing = frame[frame[target].isna()][column].dropna().unique()
    return sorted(missing)
