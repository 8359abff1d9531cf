"""
Main execution file for the Batted-Ball Home Run Analysis.

This file orchestrates the complete pipeline from data loading through
exploration, model training, cross-validation, tuning, and reporting.
"""

import pandas as pd
import logging
import warnings
from pathlib import Path

# Import our modules
from batted_ball.data_processing import (
    load_datasets, join_tables, profile_table, stratified_split,
    filter_rows, select_columns, drop_missing, add_batted_ball_features
)
from batted_ball.analysis import summarize, count_values, outcome_rate
from batted_ball.models import HomeRunTreeModel
from batted_ball.visualization import (
    plot_histogram, plot_density_by_outcome, plot_scatter, plot_faceted_scatter,
    plot_confusion_matrix, plot_tuning_results, export_results, save_summary_report
)
from config import DATA_SOURCES, PARK_KEY, OUTCOME_COL, SPLIT_CONFIG, MODEL_CONFIG, RESULTS_DIR

# Configure logging and suppress warnings for cleaner output
warnings.filterwarnings('ignore')
logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def explore(train: pd.DataFrame, results_dir: Path) -> None:
    """Exploratory summaries and plots on the training table only."""
    logger.info(f"Home run counts:\n{count_values(train, OUTCOME_COL).to_string(index=False)}")

    contact = select_columns(train, ['launch_speed', 'launch_angle', OUTCOME_COL])
    logger.info(f"Launch speed by outcome (nulls included):\n"
                f"{summarize(contact, 'launch_speed', by=OUTCOME_COL).round(2).to_string(index=False)}")

    contact = drop_missing(contact, ['launch_speed', 'launch_angle'])
    logger.info(f"Launch speed by outcome (nulls removed):\n"
                f"{summarize(contact, 'launch_speed', by=OUTCOME_COL, stats=('count', 'min', 'max', 'mean', 'median', 'std')).round(2).to_string(index=False)}")

    if 'NAME' in train.columns:
        logger.info(f"Home run rate by park:\n{outcome_rate(train, 'NAME').round(4).to_string(index=False)}")

    hard_hit = filter_rows(train, 'hard_hit == 1')
    logger.info(f"Home run rate on hard-hit balls: {hard_hit[OUTCOME_COL].mean():.4f} ({len(hard_hit)} rows)")

    plot_histogram(train, 'launch_speed', save_path=results_dir / 'launch_speed_hist.png')
    plot_density_by_outcome(train, 'launch_angle', save_path=results_dir / 'launch_angle_density.png')
    plot_scatter(train, 'launch_angle', 'launch_speed', save_path=results_dir / 'launch_scatter.png')
    if 'bearing' in train.columns:
        plot_faceted_scatter(train, 'launch_angle', 'launch_speed', facet='bearing',
                             save_path=results_dir / 'launch_scatter_by_bearing.png')


def main(batted_ball_source: str = DATA_SOURCES['batted_balls'],
         parks_source: str = DATA_SOURCES['park_dimensions'],
         results_dir: str = RESULTS_DIR):
    """Run the end-to-end pipeline: load, join, profile, split, explore, model, report.

    Steps:
        1) Load the batted-ball and park dimension tables.
        2) Left-join park dimensions onto each batted ball.
        3) Profile the joined table.
        4) Stratified 85/15 train/test split on the home run label.
        5) Feature engineering and exploration on the training set.
        6) Fit the recipe + decision tree and score train and test accuracy.
        7) 10-fold cross-validation on the training set.
        8) Tune tree depth, refit at the best depth, and score the test set.
        9) Save diagnostic plots and reports.

    Returns:
        Tuple: (model, train, test)
            - model: Finalized HomeRunTreeModel.
            - train: Training table with engineered features.
            - test: Test table with engineered features.
    """
    logger.info("Starting batted-ball home run analysis...")
    out_dir = Path(results_dir)

    try:
        logger.info("Step 1: Loading data...")
        batted_balls, parks = load_datasets(batted_ball_source, parks_source)

        logger.info("Step 2: Joining park dimensions...")
        df = join_tables(batted_balls, parks, key=PARK_KEY)

        logger.info("Step 3: Profiling joined data...")
        profile = profile_table(df)
        logger.info(f"\n{profile['head'].to_string()}")
        logger.info(f"\n{profile['structure'].to_string(index=False)}")

        logger.info("Step 4: Creating train/test split...")
        train, test = stratified_split(df, **SPLIT_CONFIG)

        logger.info("Step 5: Feature engineering and exploration...")
        train = add_batted_ball_features(train)
        test = add_batted_ball_features(test)
        explore(train, out_dir)

        logger.info("Step 6: Fitting decision tree...")
        model = HomeRunTreeModel()
        model.fit(train)
        model.evaluate(train, 'train')
        model.evaluate(test, 'test')

        logger.info("Step 7: Cross-validating...")
        cv_results = model.cross_validate(train, n_folds=MODEL_CONFIG['cv_folds'])

        logger.info("Step 8: Tuning tree depth...")
        best = model.tune(train)
        logger.info(f"\nTop candidates:\n{best.round(4).to_string(index=False)}")
        model.finalize(train)
        model.evaluate(train, 'train')
        test_results = model.evaluate(test, 'test')

        logger.info("Step 9: Saving plots and reports...")
        plot_confusion_matrix(test_results, title='Test Confusion Matrix',
                              save_path=out_dir / 'confusion_matrix.png')
        plot_tuning_results(model.tuning_results, save_path=out_dir / 'tree_depth_tuning.png')

        try:
            export_results(model.evaluations, cv_results, best, out_dir / 'home_run_results.json')
        except Exception as e:
            logger.warning(f"JSON export failed: {str(e)}")
            logger.info("Continuing without JSON export...")

        save_summary_report(model.evaluations, cv_results, best, float(train[OUTCOME_COL].mean()),
                            out_dir / 'analysis_summary.txt')

        logger.info("Batted-ball analysis completed successfully!")

        return model, train, test

    except Exception as e:
        logger.error(f"Error in main execution: {str(e)}")
        raise


if __name__ == "__main__":
    model, train, test = main()

    print(f"\nAnalysis complete! Check the generated files in '{RESULTS_DIR}/':")
    print("- *.png (exploration and model plots)")
    print("- home_run_results.json (detailed results)")
    print("- analysis_summary.txt (summary report)")
