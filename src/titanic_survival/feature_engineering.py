import logging

import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.utils.validation import check_is_fitted

from . import config

logger = logging.getLogger(__name__)


def select_columns(df, columns):
    """Keep the allow-listed columns in the given order; anything else is dropped."""
    return df[[col for col in columns if col in df.columns]]


def missing_summary(df):
    """Per-column missing value counts, only for columns with at least one missing value."""
    counts = df.isnull().sum()
    return counts[counts > 0]


class FeaturePreparer(BaseEstimator, TransformerMixin):
    """
    Column selection and indicator encoding for passenger tables.
    Scikit-learn compatible transformer following the fit/transform pattern.

    The category levels are learned once from the training table and reused
    for every later table, so the encoded columns are identical for the
    training data, the held-out data and the unlabeled submission data.
    """

    def __init__(self, columns=None, categorical=None, drop_binary_indicator=True):
        """
        Initialize the feature preparer

        Parameters:
        -----------
        columns : list of str
            Allow-list of columns to retain (label may be included)
        categorical : list of str
            Columns to expand into indicator columns
        drop_binary_indicator : bool
            Keep a single indicator for categoricals with exactly two levels
        """
        self.columns = columns
        self.categorical = categorical
        self.drop_binary_indicator = drop_binary_indicator

    def fit(self, X, y=None):
        """
        Learn the category levels of each categorical column

        Parameters:
        -----------
        X : pandas.DataFrame
            The training table
        y : ignored

        Returns:
        --------
        self : FeaturePreparer
        """
        logger.info("Fitting FeaturePreparer")
        columns = self.columns if self.columns is not None else config.FEATURES + [config.TARGET]
        categorical = self.categorical if self.categorical is not None else config.CATEGORICAL_FEATURES

        self.columns_ = list(columns)
        self.categories_ = {}
        self.indicator_columns_ = {}

        selected = select_columns(X, self.columns_)
        for col in categorical:
            if col not in selected.columns:
                logger.warning(f"Categorical column {col} not found in data, skipping")
                continue

            levels = sorted(selected[col].dropna().unique().tolist())
            indicators = [f"{col}_{level}" for level in levels]
            if self.drop_binary_indicator and len(levels) == 2:
                indicators = indicators[1:]

            self.categories_[col] = levels
            self.indicator_columns_[col] = indicators
            logger.info(f"{col} levels: {levels} -> {indicators}")

        self.output_columns_ = self.transform(X).columns.tolist()
        return self

    def _encode(self, series):
        col = series.name
        values = pd.Categorical(series, categories=self.categories_[col])
        # NaN and levels not seen during fit encode as all zeros
        dummies = pd.get_dummies(values, prefix=col, dtype=int)
        dummies.index = series.index
        return dummies[self.indicator_columns_[col]]

    def transform(self, X):
        """
        Select the allow-listed columns and expand categoricals into indicators

        Parameters:
        -----------
        X : pandas.DataFrame
            The table to transform

        Returns:
        --------
        pandas.DataFrame
            The encoded table, same index as the input
        """
        check_is_fitted(self, 'categories_')

        selected = select_columns(X, self.columns_)
        missing = missing_summary(selected)
        if len(missing) > 0:
            logger.info(f"Missing values before encoding:\n{missing}")

        for col, levels in self.categories_.items():
            if col in selected.columns and len(self.indicator_columns_[col]) < len(levels):
                n_missing = int(selected[col].isnull().sum())
                if n_missing:
                    logger.warning(
                        f"{n_missing} rows with missing {col} encode as {levels[0]} "
                        f"(single indicator {self.indicator_columns_[col]})"
                    )

        parts = []
        for col in selected.columns:
            if col in self.categories_:
                parts.append(self._encode(selected[col]))
            else:
                parts.append(selected[[col]])

        X_transformed = pd.concat(parts, axis=1)
        logger.info(f"Prepared table shape: {X_transformed.shape}")
        return X_transformed

    def get_feature_names_out(self, input_features=None):
        check_is_fitted(self, 'output_columns_')
        return list(self.output_columns_)
