import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

PARKS = ["nyy", "bos", "col", "sea"]


@pytest.fixture
def parks() -> pd.DataFrame:
    return pd.DataFrame({
        "park": PARKS,
        "NAME": ["Yankee Stadium", "Fenway Park", "Coors Field", "T-Mobile Park"],
        "Cover": ["Outdoor", "Outdoor", "Outdoor", "Roof"],
        "LF_Dim": [318, 310, 347, 331],
        "CF_Dim": [408, 390, 415, 401],
        "RF_Dim": [314, 302, 350, 326],
        "LF_W": [8, 37, 8, 8],
        "CF_W": [8, 17, 8, 8],
        "RF_W": [8, 3, 17, 8],
    })


@pytest.fixture
def batted_balls() -> pd.DataFrame:
    rng = np.random.default_rng(7)
    n = 300

    launch_speed = rng.normal(90, 12, n).round(1)
    launch_angle = rng.normal(15, 20, n).round(0)
    is_home_run = ((launch_speed >= 98) & (launch_angle >= 22) & (launch_angle <= 38)).astype(int)
    # guarantee enough positives for ten stratified folds
    is_home_run[:40] = 1
    launch_speed[:40] = rng.uniform(100, 112, 40).round(1)
    launch_angle[:40] = rng.uniform(24, 34, 40).round(0)

    df = pd.DataFrame({
        "bip_id": np.arange(n),
        "home_team": rng.choice(["NYY", "BOS"], n),
        "batter_team": rng.choice(["NYY", "BOS", "COL"], n),
        "park": rng.choice(PARKS, n),
        "pitch_name": rng.choice(["4-Seam Fastball", "Slider", "Changeup", "Curveball"], n).astype(object),
        "is_batter_lefty": rng.integers(0, 2, n),
        "is_pitcher_lefty": rng.integers(0, 2, n),
        "bb_type": rng.choice(["fly_ball", "line_drive", "ground_ball", "popup"], n).astype(object),
        "bearing": rng.choice(["left", "center", "right"], n).astype(object),
        "inning": rng.integers(1, 10, n),
        "outs_when_up": rng.integers(0, 3, n),
        "balls": rng.integers(0, 4, n),
        "strikes": rng.integers(0, 3, n),
        "plate_x": rng.normal(0, 0.6, n).round(2),
        "plate_z": rng.normal(2.5, 0.6, n).round(2),
        "pitch_mph": rng.normal(92, 5, n).round(1),
        "launch_speed": launch_speed,
        "launch_angle": launch_angle,
        "is_home_run": is_home_run,
    })

    # sprinkle missing values the recipe must impute
    df.loc[df.index[50:60], "launch_speed"] = np.nan
    df.loc[df.index[70:75], "pitch_mph"] = np.nan
    df.loc[df.index[80:85], "pitch_name"] = np.nan
    return df


@pytest.fixture
def joined(batted_balls: pd.DataFrame, parks: pd.DataFrame) -> pd.DataFrame:
    return batted_balls.merge(parks, on="park", how="left")
