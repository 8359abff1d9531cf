"""
Visualization and export functionality for the batted-ball analysis.

Contains functions for distribution and relationship plots, model diagnostics,
and exporting results to JSON and text reports.
"""

import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd
import numpy as np
import json
import logging
from pathlib import Path
from typing import Dict, Optional, Union

from config import OUTCOME_COL, PLOT_CONFIG, TARGET_NAMES
from .data_processing import require_columns

logger = logging.getLogger(__name__)

sns.set_theme(style=PLOT_CONFIG['style'], palette=PLOT_CONFIG['palette'])

PathLike = Union[str, Path]


def _finish(fig: plt.Figure, save_path: Optional[PathLike], show: bool) -> plt.Figure:
    """Lay out, optionally save and optionally display a figure."""
    fig.tight_layout()
    if save_path is not None:
        save_path = Path(save_path)
        save_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(save_path, dpi=PLOT_CONFIG['dpi'], bbox_inches='tight')
        logger.info(f"Figure saved as '{save_path}'")
    if show:
        plt.show()
    return fig


def plot_histogram(df: pd.DataFrame, column: str, bins: int = PLOT_CONFIG['bins'],
                   save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """Histogram of one numeric column; nulls are left out of the bins.

    Args:
        df (pd.DataFrame): Source table
        column (str): Numeric column to bin
        bins (int): Number of bins
        save_path: Optional output image path
        show (bool): Display the figure interactively
    """
    require_columns(df, [column], "histogram input")
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.histplot(data=df, x=column, bins=bins, edgecolor='black', ax=ax)
    ax.set_title(f'Distribution of {column}')
    ax.set_ylabel('Count')
    return _finish(fig, save_path, show)


def plot_density_by_outcome(df: pd.DataFrame, column: str, outcome: str = OUTCOME_COL,
                            save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """Overlay the density of ``column`` for home runs and non home runs.

    Each curve is normalized on its own, so the shapes stay comparable even
    though home runs are rare.
    """
    require_columns(df, [column, outcome], "density input")
    fig, ax = plt.subplots(figsize=(8, 5))
    sns.kdeplot(data=df.dropna(subset=[column]), x=column, hue=outcome,
                common_norm=False, fill=True, alpha=0.4, ax=ax)
    ax.set_title(f'{column} by {outcome}')
    return _finish(fig, save_path, show)


def plot_scatter(df: pd.DataFrame, x: str, y: str, hue: Optional[str] = OUTCOME_COL,
                 save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """Scatter plot of two numeric columns, colored by ``hue`` when given."""
    require_columns(df, [x, y] + ([hue] if hue else []), "scatter input")
    fig, ax = plt.subplots(figsize=(8, 6))
    sns.scatterplot(data=df, x=x, y=y, hue=hue, alpha=0.5, s=15, ax=ax)
    ax.set_title(f'{y} vs {x}')
    return _finish(fig, save_path, show)


def plot_faceted_scatter(df: pd.DataFrame, x: str, y: str, facet: str,
                         hue: Optional[str] = OUTCOME_COL, col_wrap: int = 4,
                         save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """
    Small-multiple scatter plots, one panel per value of ``facet``.

    Args:
        df (pd.DataFrame): Source table
        x, y (str): Numeric columns for the axes
        facet (str): Categorical column defining the panels (e.g. park or pitch type)
        hue (str, optional): Column used for point color
        col_wrap (int): Panels per row
        save_path: Optional output image path
        show (bool): Display the figure interactively

    Returns:
        plt.Figure: The figure holding every panel
    """
    require_columns(df, [x, y, facet] + ([hue] if hue else []), "facet input")
    n_panels = df[facet].nunique(dropna=True)
    grid = sns.relplot(data=df, x=x, y=y, hue=hue, col=facet,
                       col_wrap=min(col_wrap, max(n_panels, 1)),
                       kind='scatter', alpha=0.5, s=12, height=3)
    grid.set_titles('{col_name}')
    return _finish(grid.figure, save_path, show)


def plot_confusion_matrix(results: Dict, title: str = 'Confusion Matrix',
                          save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """Heatmap of the confusion matrix from ``HomeRunTreeModel.evaluate``."""
    fig, ax = plt.subplots(figsize=(6, 5))
    sns.heatmap(results['confusion_matrix'], annot=True, fmt='d', cmap='Blues', ax=ax,
                xticklabels=TARGET_NAMES, yticklabels=TARGET_NAMES)
    ax.set_xlabel('Predicted')
    ax.set_ylabel('Actual')
    ax.set_title(title)
    return _finish(fig, save_path, show)


def plot_tuning_results(tuning_results: pd.DataFrame,
                        save_path: Optional[PathLike] = None, show: bool = False) -> plt.Figure:
    """Cross-validated accuracy against tree depth with one standard error bars."""
    ordered = tuning_results.sort_values('tree_depth')
    fig, ax = plt.subplots(figsize=(8, 5))
    ax.errorbar(ordered['tree_depth'], ordered['mean_accuracy'],
                yerr=ordered['std_err'], marker='o', capsize=4)
    ax.set_xlabel('Tree Depth')
    ax.set_ylabel('Mean CV Accuracy')
    ax.set_title('Tree Depth Tuning')
    ax.grid(True, alpha=0.3)
    return _finish(fig, save_path, show)


def _to_builtin(value):
    """Convert numpy and pandas values to JSON-serializable Python objects."""
    if isinstance(value, pd.DataFrame):
        return [_to_builtin(record) for record in value.to_dict('records')]
    if isinstance(value, pd.Series):
        return value.tolist()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, dict):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_builtin(v) for v in value]
    return value


def export_results(evaluations: Dict[str, Dict], cv_results: Optional[Dict],
                   tuning_results: Optional[pd.DataFrame],
                   filename: PathLike = "home_run_results.json") -> Path:
    """Export model performance to JSON format.

    Args:
        evaluations (Dict[str, Dict]): Evaluation results keyed by table name
        cv_results (Dict, optional): Output of ``HomeRunTreeModel.cross_validate``
        tuning_results (pd.DataFrame, optional): Ranked tuning candidates
        filename: Output path

    Returns:
        Path: Location of the written file
    """
    export_data = {
        "model_performance": {
            name: {
                "accuracy": results['accuracy'],
                "n": results['n'],
                "confusion_matrix": _to_builtin(results['confusion_matrix']),
                "classification_report": _to_builtin(results['classification_report'])
            }
            for name, results in evaluations.items()
        },
        "cross_validation": None if cv_results is None else {
            key: _to_builtin(value) for key, value in cv_results.items() if key != 'fold_assignments'
        },
        "tuning": [] if tuning_results is None else _to_builtin(tuning_results)
    }

    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        json.dump(export_data, f, indent=2)

    logger.info(f"Results exported to {path}")
    return path


def save_summary_report(evaluations: Dict[str, Dict], cv_results: Optional[Dict],
                        tuning_results: Optional[pd.DataFrame], hr_rate: float,
                        filename: PathLike = "analysis_summary.txt") -> Path:
    """Generate and save a plain-text summary report.

    Args:
        evaluations (Dict[str, Dict]): Evaluation results keyed by table name
        cv_results (Dict, optional): Cross-validation output
        tuning_results (pd.DataFrame, optional): Ranked tuning candidates
        hr_rate (float): Home run rate of the training table
        filename: Output text file name
    """
    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w') as f:
        f.write("BATTED-BALL HOME RUN ANALYSIS - SUMMARY\n")
        f.write("=" * 50 + "\n\n")

        f.write("DATA\n")
        f.write("-" * 20 + "\n")
        f.write(f"Training home run rate: {hr_rate:.3f}\n")
        f.write(f"Majority-class accuracy: {max(hr_rate, 1 - hr_rate):.3f}\n\n")

        f.write("MODEL PERFORMANCE\n")
        f.write("-" * 20 + "\n")
        for name, results in evaluations.items():
            f.write(f"{name.capitalize()} accuracy: {results['accuracy']:.3f} ({results['n']} rows)\n")

        if cv_results is not None:
            f.write(f"\n{cv_results['n_folds']}-fold CV accuracy: {cv_results['mean_accuracy']:.3f} "
                    f"(std err {cv_results['std_err']:.4f})\n")

        if tuning_results is not None and not tuning_results.empty:
            f.write("\nTREE DEPTH TUNING\n")
            f.write("-" * 20 + "\n")
            for _, row in tuning_results.iterrows():
                f.write(f"  #{int(row['rank'])}: depth {int(row['tree_depth'])} - "
                        f"{row['mean_accuracy']:.4f} mean accuracy\n")

    logger.info(f"Summary report saved as '{path}'")
    return path
