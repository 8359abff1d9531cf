"""
Analysis module for grouped and ungrouped summary statistics.

Contains the aggregation helpers used during exploration: per-group counts
and proportions, location/spread statistics of a numeric column, and
home run rates by category.
"""

import pandas as pd
import numpy as np
import logging
from typing import Dict, List, Optional, Sequence, Union

from config import OUTCOME_COL, SUMMARY_STATS
from .data_processing import require_columns

logger = logging.getLogger(__name__)

GroupBy = Optional[Union[str, Sequence[str]]]


def _reduce(values: pd.Series, stat: str, skipna: bool) -> float:
    """Apply one location/spread statistic to a column of a group."""
    if stat == 'min':
        return values.min(skipna=skipna)
    if stat == 'max':
        return values.max(skipna=skipna)
    if stat == 'mean':
        return values.mean(skipna=skipna)
    if stat == 'median':
        return values.median(skipna=skipna)
    if stat == 'std':
        return values.std(skipna=skipna, ddof=1)
    raise ValueError(f"Unknown statistic: {stat}")


def summarize(df: pd.DataFrame, column: Optional[str] = None, by: GroupBy = None,
              stats: Sequence[str] = ('count', 'mean', 'median', 'std'),
              skipna: bool = False) -> pd.DataFrame:
    """
    Reduce a table to one summary row per group, or one row overall.

    Nulls are not dropped by default: with ``skipna=False`` a single null
    in a group's ``column`` makes that group's statistics null, so missing
    data stays visible. Pass ``skipna=True`` or filter beforehand with
    ``drop_missing`` to exclude them.

    Args:
        df (pd.DataFrame): Table to summarize
        column (str, optional): Numeric column for min/max/mean/median/std
        by (str or list, optional): Grouping column(s)
        stats (Sequence[str]): Any of count, proportion, min, max, mean, median, std
        skipna (bool): Exclude nulls from the numeric statistics

    Returns:
        pd.DataFrame: Grouping columns (if any) followed by ``n`` for count,
            ``prop`` for proportion, and ``<stat>_<column>`` for the rest

    Raises:
        ValueError: For an unknown statistic, or a numeric statistic without ``column``
        KeyError: If ``column`` or a grouping column is missing
    """
    unknown = [s for s in stats if s not in SUMMARY_STATS]
    if unknown:
        raise ValueError(f"Unknown statistics {unknown}; expected a subset of {SUMMARY_STATS}")

    numeric_stats = [s for s in stats if s not in ('count', 'proportion')]
    if numeric_stats and column is None:
        raise ValueError(f"Statistics {numeric_stats} need a column to summarize")

    by_cols: List[str] = [] if by is None else ([by] if isinstance(by, str) else list(by))
    require_columns(df, by_cols + ([column] if column else []), "summary input")

    total = len(df)
    if by_cols:
        groups = df.groupby(by_cols, dropna=False, sort=True)
    else:
        groups = [((), df)]

    rows = []
    for key, group in groups:
        if not isinstance(key, tuple):
            key = (key,)
        row: Dict[str, object] = dict(zip(by_cols, key))
        for stat in stats:
            if stat == 'count':
                row['n'] = len(group)
            elif stat == 'proportion':
                row['prop'] = len(group) / total if total else np.nan
            else:
                row[f'{stat}_{column}'] = _reduce(group[column], stat, skipna)
        rows.append(row)

    stat_cols = [{'count': 'n', 'proportion': 'prop'}.get(stat, f'{stat}_{column}') for stat in stats]
    return pd.DataFrame(rows, columns=by_cols + stat_cols)


def count_values(df: pd.DataFrame, by: Union[str, Sequence[str]]) -> pd.DataFrame:
    """Count rows per group with each group's share of the table, largest first."""
    counts = summarize(df, by=by, stats=('count', 'proportion'))
    return counts.sort_values('n', ascending=False, kind='stable').reset_index(drop=True)


def outcome_rate(df: pd.DataFrame, by: Union[str, Sequence[str]],
                 outcome: str = OUTCOME_COL) -> pd.DataFrame:
    """
    Home run rate per group.

    Args:
        df (pd.DataFrame): Table with a 0/1 outcome column
        by (str or list): Grouping column(s)
        outcome (str): Outcome column name

    Returns:
        pd.DataFrame: One row per group with ``n``, ``n_<outcome>`` and
            ``rate_<outcome>``, highest rate first
    """
    require_columns(df, [outcome], "outcome rate input")
    rates = summarize(df, column=outcome, by=by, stats=('count', 'mean'))
    labelled = df.groupby([by] if isinstance(by, str) else list(by), dropna=False, sort=True)[outcome].sum()
    rates[f'n_{outcome}'] = labelled.values
    rates = rates.rename(columns={f'mean_{outcome}': f'rate_{outcome}'})
    return rates.sort_values(f'rate_{outcome}', ascending=False, kind='stable').reset_index(drop=True)
