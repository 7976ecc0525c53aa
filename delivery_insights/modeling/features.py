"""
Feature preparation for the late-delivery classifiers.

Categorical columns are label/ordinal encoded (not one-hot). The encoder
learns its vocabulary from the training partition only, so a holdout level
it never saw is an evaluation-preparation error rather than a silent impute.
"""

import numpy as np
import polars as pl
from sklearn.model_selection import train_test_split
from sklearn.preprocessing import OrdinalEncoder

from delivery_insights.contracts.errors import EvaluationPrepError
from delivery_insights.contracts.schemas import (
    CATEGORICAL_FEATURES,
    DELIVERY_PRIORITIES,
    HOLDOUT_FRACTION,
    NUMERIC_FEATURES,
    POSITIVE_CLASS,
    RANDOM_SEED,
    TARGET_COLUMN,
)

# Columns whose code order is fixed rather than learned
ORDINAL_LEVELS = {"delivery_priority": DELIVERY_PRIORITIES}


def target_vector(df: pl.DataFrame) -> np.ndarray:
    """1 for Late (positive class), 0 for On Time."""
    return (df[TARGET_COLUMN] == POSITIVE_CLASS).cast(pl.Int64).to_numpy()


def split_holdout(
    df: pl.DataFrame,
    test_size: float = HOLDOUT_FRACTION,
    seed: int = RANDOM_SEED,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """Stratified train/holdout split on the outcome label."""
    indices = np.arange(len(df))
    train_idx, holdout_idx = train_test_split(
        indices,
        test_size=test_size,
        stratify=target_vector(df),
        random_state=seed,
    )
    train = df.select(pl.all().gather(train_idx))
    holdout = df.select(pl.all().gather(holdout_idx))
    return train, holdout


class ShipmentEncoder:
    """Encode categorical columns to integer codes and pass numeric columns through."""

    def __init__(
        self,
        categorical: list[str] = CATEGORICAL_FEATURES,
        numeric: list[str] = NUMERIC_FEATURES,
    ):
        self.categorical = list(categorical)
        self.numeric = list(numeric)
        self._encoder: OrdinalEncoder | None = None

    @property
    def feature_names(self) -> list[str]:
        return self.categorical + self.numeric

    @property
    def vocabulary(self) -> dict[str, list[str]]:
        if self._encoder is None:
            return {}
        return {
            col: [str(level) for level in levels]
            for col, levels in zip(self.categorical, self._encoder.categories_)
        }

    def _categorical_values(self, df: pl.DataFrame) -> np.ndarray:
        return df.select([pl.col(c).cast(pl.Utf8) for c in self.categorical]).to_numpy()

    def fit(self, df: pl.DataFrame) -> "ShipmentEncoder":
        categories = []
        for col in self.categorical:
            if col in ORDINAL_LEVELS:
                categories.append(list(ORDINAL_LEVELS[col]))
            else:
                categories.append(sorted(df[col].cast(pl.Utf8).unique().drop_nulls().to_list()))
        self._encoder = OrdinalEncoder(categories=categories, handle_unknown="error")
        self._encoder.fit(self._categorical_values(df))
        return self

    def transform(self, df: pl.DataFrame) -> np.ndarray:
        if self._encoder is None:
            raise RuntimeError("ShipmentEncoder.transform called before fit")
        values = self._categorical_values(df)
        unseen = {}
        for i, col in enumerate(self.categorical):
            known = set(self._encoder.categories_[i])
            extra = sorted({v for v in values[:, i] if v not in known}, key=str)
            if extra:
                unseen[col] = extra
        if unseen:
            raise EvaluationPrepError(
                f"Level(s) not seen when the encoder was fitted: {unseen}"
            )
        codes = self._encoder.transform(values)
        numeric = df.select(self.numeric).cast(pl.Float64).to_numpy()
        return np.hstack([codes, numeric])

    def fit_transform(self, df: pl.DataFrame) -> np.ndarray:
        return self.fit(df).transform(df)
