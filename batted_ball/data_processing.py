"""
Data processing module for the batted-ball home run analysis.

Contains data loading, the park join, table profiling, the stratified
train/test split, and the pure table transformations used during
exploration and feature engineering.
"""

import pandas as pd
import numpy as np
import logging
from typing import Callable, Dict, List, Sequence, Tuple, Union

from sklearn.model_selection import train_test_split

from config import (
    DATA_SOURCES, PARK_KEY, SPLIT_CONFIG, BATTED_BALL_THRESHOLDS
)

logger = logging.getLogger(__name__)

Condition = Union[str, pd.Series, np.ndarray, Callable[[pd.DataFrame], pd.Series]]


def require_columns(df: pd.DataFrame, columns: Sequence[str], context: str = "table") -> None:
    """Raise KeyError naming every column of ``columns`` absent from ``df``."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise KeyError(f"{context} is missing required columns: {missing}")


# === LOADING ===

def load_table(source: str) -> pd.DataFrame:
    """
    Read one CSV table from a local path or URL with inferred column types.

    Args:
        source (str): Path or URL accepted by ``pandas.read_csv``

    Returns:
        pd.DataFrame: The parsed table

    Raises:
        FileNotFoundError: If a local path does not exist
        urllib.error.URLError: If a remote source cannot be fetched
        pd.errors.ParserError: If the content is not valid CSV
    """
    try:
        df = pd.read_csv(source)
    except Exception as e:
        logger.error(f"Error loading {source}: {str(e)}")
        raise

    logger.info(f"Loaded {len(df)} rows x {len(df.columns)} columns from {source}")
    return df


def load_datasets(batted_ball_source: str = DATA_SOURCES['batted_balls'],
                  parks_source: str = DATA_SOURCES['park_dimensions']) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Load the batted-ball events and park dimensions tables.

    Failures are fatal and surfaced to the caller; there is no retry.

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame]: (batted_balls, park_dimensions)
    """
    logger.info("Loading batted-ball and park dimension data...")
    batted_balls = load_table(batted_ball_source)
    parks = load_table(parks_source)
    return batted_balls, parks


# === JOINING ===

def join_tables(left: pd.DataFrame, right: pd.DataFrame,
                key: str = PARK_KEY, how: str = "left") -> pd.DataFrame:
    """
    Join ``right`` onto ``left`` on a shared key column.

    With the default left join every left row is kept exactly once; rows
    with no match carry nulls in the right-side columns. The merge is
    validated many-to-one, so a duplicated key in ``right`` is an error
    rather than a silent row explosion.

    Args:
        left (pd.DataFrame): Primary table (batted balls)
        right (pd.DataFrame): Lookup table (park dimensions), unique on ``key``
        key (str): Shared key column name
        how (str): pandas merge type

    Returns:
        pd.DataFrame: Joined table, same row count and order as ``left`` for a left join

    Raises:
        KeyError: If ``key`` is absent from either table
        pandas.errors.MergeError: If ``key`` is not unique in ``right``
    """
    require_columns(left, [key], "left table")
    require_columns(right, [key], "right table")

    right_only = [col for col in right.columns if col != key]
    joined = left.merge(right, on=key, how=how, validate="many_to_one", indicator=True)

    unmatched = int((joined['_merge'] == 'left_only').sum())
    if unmatched:
        logger.warning(f"{unmatched} rows have no match on '{key}'; {right_only} left null")
    joined = joined.drop(columns='_merge')

    if how == "left":
        joined.index = left.index

    logger.info(f"Joined shape: {joined.shape[0]} rows x {joined.shape[1]} cols")
    return joined


# === PROFILING ===

def profile_table(df: pd.DataFrame, n: int = 5) -> Dict[str, pd.DataFrame]:
    """
    Build the head, structure and summary-statistics views of a table.

    Args:
        df (pd.DataFrame): Table to profile
        n (int): Number of leading rows in the head view

    Returns:
        Dict[str, pd.DataFrame]:
            - head: first ``n`` rows
            - structure: one row per column with dtype, non-null, missing and distinct counts
            - summary: ``describe`` over all columns, one row per column
    """
    structure = pd.DataFrame({
        'column': df.columns,
        'dtype': [str(t) for t in df.dtypes],
        'non_null': df.notna().sum().values,
        'missing': df.isna().sum().values,
        'distinct': df.nunique(dropna=True).values
    })

    summary = df.describe(include='all').T if len(df.columns) else pd.DataFrame()

    logger.info(f"Profiled table: {df.shape[0]} rows x {df.shape[1]} cols, "
                f"{int(structure['missing'].sum())} missing cells")

    return {
        'head': df.head(n),
        'structure': structure,
        'summary': summary
    }


# === SPLITTING ===

def stratified_split(df: pd.DataFrame,
                     train_fraction: float = SPLIT_CONFIG['train_fraction'],
                     strata: str = SPLIT_CONFIG['strata'],
                     random_state: int = SPLIT_CONFIG['random_state']) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition rows into training and test tables stratified by one column.

    Each value of ``strata`` keeps its proportion in both partitions up to
    rounding. The same seed and input always give the same partition.
    Rows keep their original index labels, so membership can be checked
    against the input.

    Args:
        df (pd.DataFrame): Table to split; its index must be unique
        train_fraction (float): Share of rows assigned to training, in (0, 1)
        strata (str): Column whose value proportions are preserved
        random_state (int): Seed for the shuffled draw

    Returns:
        Tuple[pd.DataFrame, pd.DataFrame]: (train, test)
    """
    if not 0 < train_fraction < 1:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    require_columns(df, [strata], "split input")
    if not df.index.is_unique:
        raise ValueError("split input index must be unique")

    train, test = train_test_split(
        df,
        train_size=train_fraction,
        stratify=df[strata],
        random_state=random_state
    )

    logger.info(f"Split {len(df)} rows into {len(train)} train / {len(test)} test "
                f"(stratified on '{strata}')")
    return train, test


# === TRANSFORMATIONS ===
# Every function below returns a new DataFrame; the input is never modified.

def filter_rows(df: pd.DataFrame, condition: Condition, **query_kwargs) -> pd.DataFrame:
    """
    Keep the rows satisfying ``condition``.

    Args:
        df (pd.DataFrame): Source table
        condition: A ``DataFrame.query`` expression (``@name`` resolves in the
            caller's scope), a boolean Series matched to ``df`` by index label,
            a boolean array in row order, or a callable taking ``df`` and
            returning either
        **query_kwargs: Passed to ``DataFrame.query``, e.g. ``local_dict``

    Returns:
        pd.DataFrame: Filtered copy
    """
    if isinstance(condition, str):
        return df.query(condition, level=1, **query_kwargs).copy()

    mask = condition(df) if callable(condition) else condition
    if isinstance(mask, pd.Series):
        # labels absent from the mask are not kept
        mask = mask.reindex(df.index, fill_value=False).eq(True)
        return df.loc[mask].copy()
    return df.loc[np.asarray(mask, dtype=bool)].copy()


def select_columns(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Project ``df`` onto ``columns`` in the given order."""
    require_columns(df, columns, "selection")
    return df[list(columns)].copy()


def derive_column(df: pd.DataFrame, name: str,
                  func: Callable[[pd.DataFrame], pd.Series]) -> pd.DataFrame:
    """
    Add (or overwrite) column ``name`` computed by ``func`` from the table.

    The result is only visible through the returned frame.
    """
    return df.assign(**{name: func})


def drop_missing(df: pd.DataFrame, columns: List[str]) -> pd.DataFrame:
    """Drop rows with a null in any of ``columns``."""
    require_columns(df, columns, "null filter")
    out = df.dropna(subset=list(columns)).copy()
    dropped = len(df) - len(out)
    if dropped:
        logger.info(f"Dropped {dropped} rows with missing {list(columns)}")
    return out


def add_batted_ball_features(df: pd.DataFrame) -> pd.DataFrame:
    """
    Derive Statcast-style contact-quality and game-state columns.

    Features:
    - hard_hit: launch speed at or above the hard-hit threshold (95 mph)
    - sweet_spot: launch angle inside the 8-32 degree window
    - count: ball-strike count as a "balls-strikes" string
    - batter_is_home: batting team is the home team

    Each feature is only added when its source columns are present.
    Nulls in the source leave a null feature value.

    Args:
        df (pd.DataFrame): Batted-ball table

    Returns:
        pd.DataFrame: Copy of ``df`` with the derived columns
    """
    logger.info("Creating batted-ball features...")
    out = df.copy()

    if 'launch_speed' in out.columns:
        speed = out['launch_speed']
        out['hard_hit'] = (speed >= BATTED_BALL_THRESHOLDS['hard_hit_mph']).astype(float)
        out.loc[speed.isna(), 'hard_hit'] = np.nan

    if 'launch_angle' in out.columns:
        angle = out['launch_angle']
        in_window = angle.between(BATTED_BALL_THRESHOLDS['sweet_spot_min_deg'],
                                  BATTED_BALL_THRESHOLDS['sweet_spot_max_deg'])
        out['sweet_spot'] = in_window.astype(float)
        out.loc[angle.isna(), 'sweet_spot'] = np.nan

    if 'balls' in out.columns and 'strikes' in out.columns:
        known = out['balls'].notna() & out['strikes'].notna()
        out['count'] = None
        out.loc[known, 'count'] = (out.loc[known, 'balls'].astype(int).astype(str) + '-' +
                                   out.loc[known, 'strikes'].astype(int).astype(str))

    if 'batter_team' in out.columns and 'home_team' in out.columns:
        teams_known = out['batter_team'].notna() & out['home_team'].notna()
        out['batter_is_home'] = (out['batter_team'] == out['home_team']).astype(float)
        out.loc[~teams_known, 'batter_is_home'] = np.nan

    return out
