"""
Configuration file for the batted-ball home run analysis.

Contains all constants, column lists, and configuration parameters used throughout the project.
"""

# Reproducibility seed shared by the split, the folds and the tree
SEED = 494

# Input tables: local paths or URLs, anything pandas.read_csv accepts
DATA_DIR = "data"
DATA_SOURCES = {
    'batted_balls': f"{DATA_DIR}/batted_balls.csv",
    'park_dimensions': f"{DATA_DIR}/park_dimensions.csv"
}

# Shared key between the two tables
PARK_KEY = 'park'

# Binary outcome label (1 = home run)
OUTCOME_COL = 'is_home_run'

# Identifier and free-text columns that never enter the model
ID_COLS = [
    'bip_id', 'game_date', 'home_team', 'away_team', 'batter_team',
    'batter_name', 'pitcher_name', 'batter_id', 'pitcher_id'
]

# Recipe inputs
NUMERIC_FEATURES = [
    # Contact quality
    'launch_speed', 'launch_angle',

    # Pitch
    'pitch_mph', 'plate_x', 'plate_z',

    # Game situation
    'inning', 'outs_when_up', 'balls', 'strikes',

    # Park dimensions (feet) and wall heights
    'LF_Dim', 'CF_Dim', 'RF_Dim', 'LF_W', 'CF_W', 'RF_W'
]

CATEGORICAL_FEATURES = [
    'pitch_name',        # Four-Seam Fastball, Slider, ...
    'NAME',              # Park name from the dimensions table
    'is_batter_lefty',
    'is_pitcher_lefty',
    'bb_type',           # fly_ball, line_drive, ground_ball, popup
    'bearing',           # left, center, right
    'Cover'              # Outdoor, Dome, Roof
]

# Train/test split
SPLIT_CONFIG = {
    'train_fraction': 0.85,
    'strata': OUTCOME_COL,
    'random_state': SEED
}

# Decision tree defaults and tuning
MODEL_CONFIG = {
    'max_depth': 30,
    'min_samples_split': 20,
    'ccp_alpha': 0.0,
    'cv_folds': 10,
    'tree_depth_grid': [1, 4, 8, 11, 15],
    'top_n': 5
}

# Statcast definitions used for feature engineering
BATTED_BALL_THRESHOLDS = {
    'hard_hit_mph': 95.0,        # Launch speed at or above counts as hard hit
    'sweet_spot_min_deg': 8.0,   # Sweet-spot launch angle window
    'sweet_spot_max_deg': 32.0
}

# Statistics the aggregator understands
SUMMARY_STATS = ['count', 'proportion', 'min', 'max', 'mean', 'median', 'std']

# Target names for classification report
TARGET_NAMES = ['Not Home Run', 'Home Run']

# Plot styling
PLOT_CONFIG = {
    'style': 'whitegrid',
    'palette': 'Set2',
    'dpi': 150,
    'bins': 30
}

# Output location for figures and reports
RESULTS_DIR = "results"
