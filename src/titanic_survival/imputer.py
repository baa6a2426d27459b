import logging

import pandas as pd
from sklearn.base import BaseEstimator, TransformerMixin
from sklearn.impute import KNNImputer
from sklearn.preprocessing import StandardScaler
from sklearn.utils.validation import check_is_fitted

from . import config
from .exceptions import InsufficientDataError, SchemaMismatchError

logger = logging.getLogger(__name__)


class NeighborImputer(BaseEstimator, TransformerMixin):
    """
    Center/scale the encoded feature table and fill missing values from the
    k nearest rows.

    The scaling statistics and the donor rows are fixed by ``fit``; every
    later ``transform`` (training subset, held-out subset, submission data)
    reuses them. Distances are NaN-aware Euclidean over the observed
    columns, so a row with several missing columns has each one filled
    independently from the columns it does have.
    """

    def __init__(self, n_neighbors=config.IMPUTE_NEIGHBORS, exclude=None):
        self.n_neighbors = n_neighbors
        self.exclude = exclude

    def fit(self, X, y=None):
        """
        Fit scaling statistics and the neighbour index

        Parameters:
        -----------
        X : pandas.DataFrame
            Encoded training table; excluded columns (the label) are ignored
        y : ignored

        Returns:
        --------
        self : NeighborImputer
        """
        exclude = self.exclude if self.exclude is not None else [config.TARGET]
        self.exclude_ = [col for col in exclude if col in X.columns]
        self.feature_columns_ = [col for col in X.columns if col not in exclude]

        features = X[self.feature_columns_].astype(float)
        complete_rows = int(features.notnull().all(axis=1).sum())
        logger.info(f"Fitting imputer on {len(features)} rows ({complete_rows} complete), k={self.n_neighbors}")

        if complete_rows < self.n_neighbors:
            raise InsufficientDataError(
                f"Need at least {self.n_neighbors} fully observed rows to impute, found {complete_rows}"
            )

        self.scaler_ = StandardScaler().fit(features)
        scaled = self.scaler_.transform(features)
        self.knn_ = KNNImputer(n_neighbors=self.n_neighbors, keep_empty_features=True).fit(scaled)
        return self

    def _check_columns(self, X):
        absent = [col for col in self.feature_columns_ if col not in X.columns]
        if absent:
            raise SchemaMismatchError(f"Columns missing from table: {absent}")

    def transform(self, X):
        """
        Scale with the fitted statistics and fill missing values

        Parameters:
        -----------
        X : pandas.DataFrame
            Encoded table with the fitted feature columns

        Returns:
        --------
        pandas.DataFrame
            Copy of X with scaled, fully observed feature columns
        """
        check_is_fitted(self, 'knn_')
        self._check_columns(X)

        features = X[self.feature_columns_].astype(float)
        missing = features.isnull().sum()
        missing = missing[missing > 0]
        if len(missing) > 0:
            logger.info(f"Imputing missing values: {dict(missing)}")

        scaled = self.scaler_.transform(features)
        filled = self.knn_.transform(scaled)

        X_imputed = X.copy()
        X_imputed[self.feature_columns_] = pd.DataFrame(
            filled, index=X.index, columns=self.feature_columns_
        )
        return X_imputed

    def inverse_transform(self, X):
        """Map scaled feature columns back to their original units."""
        check_is_fitted(self, 'scaler_')
        self._check_columns(X)

        original = X.copy()
        original[self.feature_columns_] = self.scaler_.inverse_transform(
            X[self.feature_columns_].astype(float)
        )
        return original
