"""
Decision tree model and training functionality for home run classification.

Contains the preprocessing recipe, the tree workflow, and the model class that
fits, evaluates, cross-validates, and tunes it.
"""

import pandas as pd
import numpy as np
from sklearn.base import clone
from sklearn.compose import ColumnTransformer
from sklearn.impute import SimpleImputer
from sklearn.metrics import accuracy_score, classification_report, confusion_matrix
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder
from sklearn.tree import DecisionTreeClassifier
import logging
from typing import Dict, List, Optional, Sequence

from config import (
    MODEL_CONFIG, NUMERIC_FEATURES, CATEGORICAL_FEATURES, OUTCOME_COL, SEED, TARGET_NAMES
)
from .data_processing import require_columns

logger = logging.getLogger(__name__)

DEPTH_PARAM = 'tree__max_depth'


def build_recipe(numeric_features: Sequence[str] = NUMERIC_FEATURES,
                 categorical_features: Sequence[str] = CATEGORICAL_FEATURES) -> ColumnTransformer:
    """
    Build the preprocessing recipe applied identically to every table.

    Steps:
    - numeric: impute missing values with the training median
    - categorical: impute missing values with the training mode, then dummy encode

    Columns not named here are dropped.

    Args:
        numeric_features (Sequence[str]): Numeric predictor columns
        categorical_features (Sequence[str]): Categorical predictor columns

    Returns:
        ColumnTransformer: Unfitted recipe
    """
    categorical = Pipeline([
        ('impute_mode', SimpleImputer(strategy='most_frequent')),
        ('dummy', OneHotEncoder(handle_unknown='ignore', sparse_output=False))
    ])

    transformers = []
    if numeric_features:
        transformers.append(('impute_median', SimpleImputer(strategy='median'), list(numeric_features)))
    if categorical_features:
        transformers.append(('categorical', categorical, list(categorical_features)))

    return ColumnTransformer(transformers, remainder='drop')


def build_workflow(recipe: ColumnTransformer,
                   max_depth: Optional[int] = MODEL_CONFIG['max_depth'],
                   min_samples_split: int = MODEL_CONFIG['min_samples_split'],
                   ccp_alpha: float = MODEL_CONFIG['ccp_alpha'],
                   random_state: int = SEED) -> Pipeline:
    """Chain the recipe and a decision tree classifier into one estimator."""
    tree = DecisionTreeClassifier(
        max_depth=max_depth,
        min_samples_split=min_samples_split,
        ccp_alpha=ccp_alpha,
        random_state=random_state
    )
    return Pipeline([('recipe', recipe), ('tree', tree)])


def recipe_columns(recipe: ColumnTransformer) -> List[str]:
    """Every input column the recipe references."""
    columns: List[str] = []
    for _, _, cols in recipe.transformers:
        columns.extend(cols)
    return columns


class HomeRunTreeModel:
    """
    Decision tree classifier for home run prediction with its preprocessing recipe.

    The model moves through the states ``unfit -> fit -> evaluated -> tuned``.
    Cross-validation and tuning work on clones of the workflow, so they never
    disturb the fitted model; ``finalize`` refits it at the tuned depth.

    Attributes:
        outcome (str): Binary outcome column
        workflow (Pipeline): Recipe + decision tree estimator
        state (str): Current lifecycle state
        fitted (bool): Whether the workflow holds a fitted tree
        evaluations (Dict): Evaluation results keyed by table name
        cv_results (Dict): Output of the last cross-validation
        tuning_results (pd.DataFrame): Ranked candidates from the last tuning run
        best_depth (int): Depth chosen by the last tuning run
    """

    def __init__(self, numeric_features: Sequence[str] = NUMERIC_FEATURES,
                 categorical_features: Sequence[str] = CATEGORICAL_FEATURES,
                 outcome: str = OUTCOME_COL,
                 random_state: int = SEED,
                 **tree_params):
        """
        Args:
            numeric_features (Sequence[str]): Columns imputed with the median
            categorical_features (Sequence[str]): Columns imputed with the mode and dummy encoded
            outcome (str): Outcome column name
            random_state (int): Seed for the tree and the folds
            **tree_params: max_depth, min_samples_split, ccp_alpha overrides
        """
        self.outcome = outcome
        self.random_state = random_state
        self.recipe = build_recipe(numeric_features, categorical_features)
        self.workflow = build_workflow(self.recipe, random_state=random_state, **tree_params)
        self.features = recipe_columns(self.recipe)
        self.state = 'unfit'
        self.fitted = False
        self.evaluations: Dict[str, Dict] = {}
        self.cv_results: Optional[Dict] = None
        self.tuning_results: Optional[pd.DataFrame] = None
        self.best_depth: Optional[int] = None

    def _xy(self, df: pd.DataFrame, context: str):
        require_columns(df, self.features + [self.outcome], context)
        return df[self.features], df[self.outcome]

    def fit(self, train: pd.DataFrame) -> "HomeRunTreeModel":
        """
        Learn the recipe and tree from the training table.

        Raises:
            KeyError: If the table lacks a recipe feature or the outcome
        """
        X, y = self._xy(train, "training table")
        logger.info(f"Fitting decision tree on {len(X)} rows, {len(self.features)} input columns...")
        self.workflow.fit(X, y)
        self.fitted = True
        self.state = 'fit'
        return self

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        """Predicted outcome labels for a table with the training schema."""
        if not self.fitted:
            raise RuntimeError("Model must be fit before predicting")
        require_columns(df, self.features, "prediction table")
        return self.workflow.predict(df[self.features])

    def evaluate(self, df: pd.DataFrame, name: str = 'test') -> Dict:
        """Score the fitted model on a table.

        Args:
            df (pd.DataFrame): Table with the training schema and the outcome
            name (str): Key the results are stored under (e.g. 'train', 'test')

        Returns:
            Dict: accuracy, n, confusion_matrix, classification_report,
                predictions and actuals
        """
        if not self.fitted:
            raise RuntimeError("Model must be fit before evaluation")

        X, y = self._xy(df, f"{name} table")
        predictions = self.workflow.predict(X)
        actuals = y.to_numpy()

        accuracy = accuracy_score(actuals, predictions)
        labels = [0, 1]
        results = {
            'accuracy': float(accuracy),
            'n': int(len(actuals)),
            'confusion_matrix': confusion_matrix(actuals, predictions, labels=labels),
            'classification_report': classification_report(
                actuals, predictions, labels=labels, target_names=TARGET_NAMES,
                output_dict=True, zero_division=0
            ),
            'predictions': predictions,
            'actuals': actuals
        }

        logger.info(f"{name.capitalize()} accuracy: {accuracy:.4f} ({len(actuals)} rows)")
        self.evaluations[name] = results
        if self.state == 'fit':
            self.state = 'evaluated'
        return results

    def _folds(self, n_folds: int) -> StratifiedKFold:
        return StratifiedKFold(n_splits=n_folds, shuffle=True, random_state=self.random_state)

    def cross_validate(self, train: pd.DataFrame,
                       n_folds: int = MODEL_CONFIG['cv_folds']) -> Dict:
        """
        Stratified k-fold cross-validation of the workflow on the training table.

        Each fold fits a fresh copy of the workflow on the other k-1 folds and
        scores accuracy on the held-out fold.

        Args:
            train (pd.DataFrame): Training table
            n_folds (int): Number of folds

        Returns:
            Dict:
                - fold_accuracies (List[float]): Accuracy per held-out fold
                - fold_sizes (List[int]): Rows held out in each fold
                - mean_accuracy, var_accuracy, std_accuracy, std_err (float)
                - n_folds (int)
                - fold_assignments (pd.Series): Held-out fold of every row, indexed like ``train``
        """
        X, y = self._xy(train, "training table")
        logger.info(f"Running {n_folds}-fold cross-validation on {len(X)} rows...")

        fold_accuracies = []
        fold_sizes = []
        assignments = np.full(len(X), -1)
        for fold, (fit_idx, held_idx) in enumerate(self._folds(n_folds).split(X, y)):
            estimator = clone(self.workflow)
            estimator.fit(X.iloc[fit_idx], y.iloc[fit_idx])
            predictions = estimator.predict(X.iloc[held_idx])
            fold_accuracies.append(float(accuracy_score(y.iloc[held_idx], predictions)))
            fold_sizes.append(int(len(held_idx)))
            assignments[held_idx] = fold

        scores = np.array(fold_accuracies)
        std = float(scores.std(ddof=1)) if n_folds > 1 else 0.0
        results = {
            'fold_accuracies': fold_accuracies,
            'fold_sizes': fold_sizes,
            'mean_accuracy': float(scores.mean()),
            'var_accuracy': std ** 2,
            'std_accuracy': std,
            'std_err': std / np.sqrt(n_folds),
            'n_folds': n_folds,
            'fold_assignments': pd.Series(assignments, index=X.index, name='fold')
        }

        logger.info(f"CV accuracy: {results['mean_accuracy']:.4f} "
                    f"(std err {results['std_err']:.4f})")
        self.cv_results = results
        return results

    def tune(self, train: pd.DataFrame,
             depth_grid: Sequence[int] = MODEL_CONFIG['tree_depth_grid'],
             n_folds: int = MODEL_CONFIG['cv_folds'],
             top_n: int = MODEL_CONFIG['top_n']) -> pd.DataFrame:
        """
        Grid search over tree depth, scored by cross-validated accuracy.

        Every candidate is evaluated on the same folds. Candidates are ranked
        by mean accuracy, highest first, with shallower trees winning ties.

        Args:
            train (pd.DataFrame): Training table
            depth_grid (Sequence[int]): Candidate max depths
            n_folds (int): Number of folds per candidate
            top_n (int): Number of candidates returned

        Returns:
            pd.DataFrame: tree_depth, mean_accuracy, std_accuracy, std_err,
                n_folds and rank for the best ``top_n`` candidates
        """
        X, y = self._xy(train, "training table")
        logger.info(f"Tuning tree depth over {list(depth_grid)} with {n_folds}-fold CV...")

        search = GridSearchCV(
            clone(self.workflow),
            param_grid={DEPTH_PARAM: list(depth_grid)},
            scoring='accuracy',
            cv=self._folds(n_folds),
            refit=False
        )
        search.fit(X, y)

        cv = search.cv_results_
        std = np.asarray(cv['std_test_score'], dtype=float)
        # GridSearchCV reports the population std; rescale to the sample std
        sample_std = std * np.sqrt(n_folds / (n_folds - 1)) if n_folds > 1 else std
        ranked = pd.DataFrame({
            'tree_depth': [int(d) for d in cv[f'param_{DEPTH_PARAM}']],
            'mean_accuracy': cv['mean_test_score'],
            'std_accuracy': sample_std,
            'std_err': sample_std / np.sqrt(n_folds),
            'n_folds': n_folds
        })
        ranked = ranked.sort_values(['mean_accuracy', 'tree_depth'],
                                    ascending=[False, True]).reset_index(drop=True)
        ranked['rank'] = np.arange(1, len(ranked) + 1)

        self.tuning_results = ranked
        self.best_depth = int(ranked.loc[0, 'tree_depth'])
        self.state = 'tuned'

        logger.info(f"Best tree depth: {self.best_depth} "
                    f"(CV accuracy {ranked.loc[0, 'mean_accuracy']:.4f})")
        return ranked.head(top_n)

    def finalize(self, train: pd.DataFrame) -> "HomeRunTreeModel":
        """Refit the workflow on the full training table at the tuned depth."""
        if self.best_depth is None:
            raise RuntimeError("Model must be tuned before it can be finalized")

        self.workflow.set_params(**{DEPTH_PARAM: self.best_depth})
        X, y = self._xy(train, "training table")
        logger.info(f"Refitting decision tree with max_depth={self.best_depth}...")
        self.workflow.fit(X, y)
        self.fitted = True
        self.evaluations = {}
        self.state = 'tuned'
        return self
