"""
Batted-Ball Home Run Analysis

Exploratory analysis and a first decision tree classifier for predicting
whether a ball in play is a home run, using Statcast batted-ball events
joined with ballpark dimensions.
"""

from .data_processing import (
    load_datasets, join_tables, profile_table, stratified_split,
    filter_rows, select_columns, derive_column, drop_missing, add_batted_ball_features
)
from .analysis import summarize, count_values, outcome_rate
from .models import HomeRunTreeModel, build_recipe, build_workflow
from .visualization import export_results, save_summary_report

__version__ = "1.0"

__all__ = [
    'load_datasets',
    'join_tables',
    'profile_table',
    'stratified_split',
    'filter_rows',
    'select_columns',
    'derive_column',
    'drop_missing',
    'add_batted_ball_features',
    'summarize',
    'count_values',
    'outcome_rate',
    'HomeRunTreeModel',
    'build_recipe',
    'build_workflow',
    'export_results',
    'save_summary_report'
]
