"""
Late-delivery classifiers: logistic regression, a single decision tree, and a
tuned XGBoost ensemble. Each run is one stateless pass:

    split (stratified) -> encode (fit on train) -> fit -> score on holdout

Metrics treat "Late" as the positive class and are computed on the holdout
partition only.
"""

import json
import os
from dataclasses import dataclass, field

import numpy as np
import polars as pl
from scipy.stats import randint, uniform
from sklearn.linear_model import LogisticRegression
from sklearn.metrics import accuracy_score, f1_score, precision_score, recall_score
from sklearn.model_selection import RandomizedSearchCV, StratifiedKFold
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.tree import DecisionTreeClassifier
from xgboost import XGBClassifier

from delivery_insights.contracts.schemas import (
    FEATURE_IMPORTANCE_OUTPUT_PATH,
    FEATURE_IMPORTANCE_SCHEMA,
    HOLDOUT_FRACTION,
    METRICS_OUTPUT_PATH,
    METRICS_SCHEMA,
    POSITIVE_CLASS,
    RANDOM_SEED,
    SEARCH_CV_FOLDS,
    SEARCH_ITERATIONS,
)
from delivery_insights.modeling.features import ShipmentEncoder, split_holdout, target_vector

LOGISTIC_REGRESSION = "Logistic Regression"
DECISION_TREE = "Decision Tree"
GRADIENT_BOOSTING = "XGBoost (tuned)"

XGB_PARAM_DISTRIBUTIONS = {
    "n_estimators": randint(100, 400),
    "max_depth": randint(2, 7),
    "learning_rate": uniform(0.01, 0.29),
    "subsample": uniform(0.6, 0.4),
    "colsample_bytree": uniform(0.6, 0.4),
    "min_child_weight": randint(1, 8),
}


@dataclass
class ModelingResult:
    """
    Output of one modeling run.

    Attributes
    ----------
    metrics : pl.DataFrame
        One row per model matching METRICS_SCHEMA.
    models : dict
        Fitted estimators keyed by model name.
    best_params : dict
        Hyperparameters picked by the randomized search.
    feature_importances : pl.DataFrame
        Tree-model importances matching FEATURE_IMPORTANCE_SCHEMA.
    """
    metrics: pl.DataFrame
    models: dict = field(default_factory=dict)
    best_params: dict = field(default_factory=dict)
    feature_importances: pl.DataFrame = field(
        default_factory=lambda: pl.DataFrame(schema=FEATURE_IMPORTANCE_SCHEMA)
    )
    train_size: int = 0
    holdout_size: int = 0
    seed: int = RANDOM_SEED


def build_models(
    seed: int = RANDOM_SEED,
    search_iterations: int = SEARCH_ITERATIONS,
    cv_folds: int = SEARCH_CV_FOLDS,
) -> dict:
    """Unfitted estimators keyed by display name."""
    boosted = XGBClassifier(
        objective="binary:logistic",
        eval_metric="logloss",
        tree_method="hist",
        random_state=seed,
        n_jobs=1,
    )
    search = RandomizedSearchCV(
        estimator=boosted,
        param_distributions=XGB_PARAM_DISTRIBUTIONS,
        n_iter=search_iterations,
        cv=StratifiedKFold(n_splits=cv_folds, shuffle=True, random_state=seed),
        scoring="f1",
        random_state=seed,
        n_jobs=1,
        refit=True,
    )
    return {
        LOGISTIC_REGRESSION: make_pipeline(
            StandardScaler(), LogisticRegression(max_iter=1000, random_state=seed)
        ),
        DECISION_TREE: DecisionTreeClassifier(random_state=seed),
        GRADIENT_BOOSTING: search,
    }


def evaluate(model, X: np.ndarray, y: np.ndarray) -> dict:
    """Holdout metrics with Late (1) as the positive class."""
    predicted = model.predict(X)
    return {
        "accuracy": float(accuracy_score(y, predicted)),
        "precision": float(precision_score(y, predicted, pos_label=1, zero_division=0)),
        "recall": float(recall_score(y, predicted, pos_label=1, zero_division=0)),
        "f1": float(f1_score(y, predicted, pos_label=1, zero_division=0)),
    }


def _tree_importances(name: str, model, feature_names: list[str]) -> list[dict]:
    estimator = model.best_estimator_ if isinstance(model, RandomizedSearchCV) else model
    if not hasattr(estimator, "feature_importances_"):
        return []
    return [
        {"model": name, "feature": feature, "importance": float(importance)}
        for feature, importance in zip(feature_names, estimator.feature_importances_)
    ]


def _plain(value):
    """numpy scalars -> Python scalars for JSON."""
    return value.item() if isinstance(value, np.generic) else value


def run_models(
    df: pl.DataFrame,
    test_size: float = HOLDOUT_FRACTION,
    seed: int = RANDOM_SEED,
    search_iterations: int = SEARCH_ITERATIONS,
    cv_folds: int = SEARCH_CV_FOLDS,
) -> ModelingResult:
    """
    Fit the three classifiers on the normalized table and score them on the holdout.
    Raises EvaluationPrepError when the holdout carries a level unseen in training.
    """
    train, holdout = split_holdout(df, test_size=test_size, seed=seed)
    print(f"[model] Split {len(train):,} train / {len(holdout):,} holdout (seed={seed})")

    encoder = ShipmentEncoder().fit(train)
    X_train = encoder.transform(train)
    X_holdout = encoder.transform(holdout)
    y_train = target_vector(train)
    y_holdout = target_vector(holdout)

    rows = []
    fitted = {}
    importances = []
    best_params = {}
    for name, model in build_models(seed, search_iterations, cv_folds).items():
        print(f"[model] Fitting {name}...")
        model.fit(X_train, y_train)
        scores = evaluate(model, X_holdout, y_holdout)
        rows.append({"model": name, **scores})
        fitted[name] = model
        importances.extend(_tree_importances(name, model, encoder.feature_names))
        if isinstance(model, RandomizedSearchCV):
            best_params = {k: _plain(v) for k, v in model.best_params_.items()}
        print(f"  accuracy={scores['accuracy']:.3f} precision={scores['precision']:.3f} "
              f"recall={scores['recall']:.3f} f1={scores['f1']:.3f}")

    return ModelingResult(
        metrics=pl.DataFrame(rows, schema=METRICS_SCHEMA),
        models=fitted,
        best_params=best_params,
        feature_importances=pl.DataFrame(importances, schema=FEATURE_IMPORTANCE_SCHEMA),
        train_size=len(train),
        holdout_size=len(holdout),
        seed=seed,
    )


def save_metrics(
    result: ModelingResult,
    path: str = METRICS_OUTPUT_PATH,
    importance_path: str = FEATURE_IMPORTANCE_OUTPUT_PATH,
) -> None:
    """Save the metrics table to JSON and the feature importances to CSV."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    payload = {
        "positive_class": POSITIVE_CLASS,
        "seed": result.seed,
        "train_size": result.train_size,
        "holdout_size": result.holdout_size,
        "best_params": result.best_params,
        "metrics": result.metrics.to_dicts(),
    }
    with open(path, "w") as fh:
        json.dump(payload, fh, indent=2)
    print(f"[model] Saved metrics for {len(result.metrics)} models to '{path}'")

    os.makedirs(os.path.dirname(importance_path) or ".", exist_ok=True)
    result.feature_importances.write_csv(importance_path)
    print(f"[model] Saved feature importances to '{importance_path}'")


def load_metrics(path: str = METRICS_OUTPUT_PATH) -> pl.DataFrame:
    """Read the persisted metrics table back as a DataFrame."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Metrics file not found at '{path}'. Run `model` first.")
    with open(path) as fh:
        payload = json.load(fh)
    return pl.DataFrame(payload["metrics"], schema=METRICS_SCHEMA)
