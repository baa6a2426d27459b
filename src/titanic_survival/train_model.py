import logging
import os
from dataclasses import dataclass, field

import joblib
import numpy as np
import pandas as pd
from lightgbm import LGBMClassifier
from sklearn.dummy import DummyClassifier
from sklearn.ensemble import BaggingClassifier, GradientBoostingClassifier, RandomForestClassifier
from sklearn.model_selection import (
    GridSearchCV, RepeatedStratifiedKFold, StratifiedKFold, cross_val_score, train_test_split
)
from sklearn.neighbors import KNeighborsClassifier
from sklearn.neural_network import MLPClassifier
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier
from xgboost import XGBClassifier

from . import config
from .exceptions import ModelFitFailure, SchemaMismatchError, UnknownModelError

logger = logging.getLogger(__name__)


def stratified_split(df, label=config.TARGET, train_fraction=config.TRAIN_FRACTION,
                     seed=config.RANDOM_SEED):
    """
    Split a labeled table into training and evaluation subsets

    Sampling is stratified on the label so each subset keeps the class
    proportions of the input.

    Parameters:
    -----------
    df : pandas.DataFrame
        Labeled table
    label : str
        Label column
    train_fraction : float
        Share of rows that go to the training subset
    seed : int
        Random seed

    Returns:
    --------
    tuple
        (train_df, test_df)
    """
    logger.info(f"Splitting {len(df)} rows with train_fraction={train_fraction}, seed={seed}")

    train_df, test_df = train_test_split(
        df, train_size=train_fraction, random_state=seed, stratify=df[label]
    )

    logger.info(f"Data split: train={train_df.shape}, test={test_df.shape}")
    logger.info(f"Class distribution in train: {dict(train_df[label].value_counts())}")
    logger.info(f"Class distribution in test: {dict(test_df[label].value_counts())}")
    return train_df, test_df


# Every factory takes the run seed plus model-specific hyperparameters
# and returns an unfitted classifier.
MODEL_REGISTRY = {
    'knn': lambda seed, **kw: KNeighborsClassifier(**{'n_neighbors': 1, **kw}),
    'decision_tree': lambda seed, **kw: DecisionTreeClassifier(random_state=seed, **kw),
    'boosted_ensemble': lambda seed, **kw: GradientBoostingClassifier(random_state=seed, **kw),
    'neural_net': lambda seed, **kw: MLPClassifier(
        random_state=seed, **{'hidden_layer_sizes': (10,), 'max_iter': 1000, **kw}
    ),
    'linear_svm': lambda seed, **kw: SVC(random_state=seed, **{'kernel': 'linear', **kw}),
    'random_forest': lambda seed, **kw: RandomForestClassifier(random_state=seed, **kw),
    'bagging': lambda seed, **kw: BaggingClassifier(
        DecisionTreeClassifier(random_state=seed), random_state=seed, **kw
    ),
    'xgboost': lambda seed, **kw: XGBClassifier(random_state=seed, eval_metric='logloss', **kw),
    'lightgbm': lambda seed, **kw: LGBMClassifier(random_state=seed, verbose=-1, **kw),
    'constant': lambda seed, **kw: DummyClassifier(**{'strategy': 'most_frequent', **kw}),
}


def build_model(model_name, seed=config.RANDOM_SEED, **hyperparams):
    """Instantiate the registered classifier for ``model_name``."""
    if model_name not in MODEL_REGISTRY:
        raise UnknownModelError(model_name)
    return MODEL_REGISTRY[model_name](seed, **hyperparams)


@dataclass(frozen=True)
class TrainingConfig:
    """Resampling scheme shared by every model of a run."""
    method: str = config.CV_METHOD
    folds: int = config.CV_FOLDS
    repeats: int = config.CV_REPEATS
    seed: int = config.RANDOM_SEED
    scoring: str = 'accuracy'

    def splitter(self):
        if self.method == 'repeatedcv':
            return RepeatedStratifiedKFold(
                n_splits=self.folds, n_repeats=self.repeats, random_state=self.seed
            )
        if self.method == 'cv':
            return StratifiedKFold(n_splits=self.folds, shuffle=True, random_state=self.seed)
        raise ValueError(f"Unsupported resampling method: {self.method}")


@dataclass(frozen=True)
class TrainedModel:
    """A fitted classifier together with the columns it was trained on."""
    name: str
    estimator: object
    feature_columns: tuple
    label: str = config.TARGET
    cv_accuracy: float = float('nan')
    cv_std: float = float('nan')
    best_params: dict = field(default_factory=dict)

    def features(self, df):
        """Return df's predictor columns in training order."""
        columns = [col for col in df.columns if col != self.label]
        missing = [col for col in self.feature_columns if col not in columns]
        extra = [col for col in columns if col not in self.feature_columns]
        if missing or extra:
            raise SchemaMismatchError(
                f"{self.name}: prepared columns do not match training columns "
                f"(missing={missing}, unexpected={extra})"
            )
        return df[list(self.feature_columns)]

    def predict(self, df):
        return np.asarray(self.estimator.predict(self.features(df))).astype(int)


def _split_grid(hyperparams):
    # list-valued hyperparameters are tuned, everything else is fixed
    fixed = {k: v for k, v in hyperparams.items() if not isinstance(v, list)}
    grid = {k: v for k, v in hyperparams.items() if isinstance(v, list)}
    return fixed, grid


def fit_model(model_name, train_df, label=config.TARGET, training_config=None, pool=None,
              **hyperparams):
    """
    Fit one model type through the shared training interface

    The label column is the response and every other column a predictor.
    Accuracy is estimated by resampling (repeated stratified k-fold by
    default) on the pool's workers; the returned model is refit on the
    whole training subset.

    Parameters:
    -----------
    model_name : str
        Registry identifier
    train_df : pandas.DataFrame
        Prepared, imputed training subset
    label : str
        Label column
    training_config : TrainingConfig
        Resampling configuration
    pool : WorkerPool, optional
        Worker pool used for resampling
    **hyperparams
        Model-specific hyperparameters; list values form a tuning grid

    Returns:
    --------
    TrainedModel
    """
    training_config = training_config or TrainingConfig()
    n_jobs = pool.jobs() if pool is not None else 1

    if model_name not in MODEL_REGISTRY:
        raise UnknownModelError(model_name)

    X = train_df.drop(columns=[label]).copy()
    y = train_df[label].astype(int)
    fixed, grid = _split_grid(hyperparams)

    try:
        estimator = build_model(model_name, seed=training_config.seed, **fixed)
        cv = training_config.splitter()

        if grid:
            search = GridSearchCV(
                estimator=estimator,
                param_grid=grid,
                cv=cv,
                scoring=training_config.scoring,
                n_jobs=n_jobs,
                error_score='raise',
            )
            search.fit(X, y)
            fitted = search.best_estimator_
            best_index = search.best_index_
            cv_accuracy = float(search.cv_results_['mean_test_score'][best_index])
            cv_std = float(search.cv_results_['std_test_score'][best_index])
            best_params = dict(search.best_params_)
        else:
            scores = cross_val_score(estimator, X, y, cv=cv, scoring=training_config.scoring,
                                     n_jobs=n_jobs, error_score='raise')
            fitted = estimator.fit(X, y)
            cv_accuracy = float(np.mean(scores))
            cv_std = float(np.std(scores))
            best_params = {}
    except Exception as e:
        raise ModelFitFailure(model_name, e) from e

    logger.info(f"{model_name}: CV {training_config.scoring} = {cv_accuracy:.4f} (+/- {cv_std:.4f})")
    if best_params:
        logger.info(f"{model_name}: best parameters {best_params}")

    return TrainedModel(
        name=model_name,
        estimator=fitted,
        feature_columns=tuple(X.columns),
        label=label,
        cv_accuracy=cv_accuracy,
        cv_std=cv_std,
        best_params=best_params,
    )


class ModelTrainer:
    """
    Trains several model types on the same training subset and keeps the
    ones that fit. A model that raises while fitting is logged and skipped.
    """

    def __init__(self, training_config=None, pool=None, model_dir=config.MODEL_DIR):
        """
        Initialize the model trainer

        Parameters:
        -----------
        training_config : TrainingConfig
            Resampling configuration shared by all models
        pool : WorkerPool, optional
            Worker pool acquired by the caller for the whole run
        model_dir : str
            Directory to save trained models
        """
        self.training_config = training_config or TrainingConfig()
        self.pool = pool
        self.model_dir = model_dir

        self.models = {}
        self.failures = {}

        logger.info("ModelTrainer initialized")

    def train_all(self, train_df, label=config.TARGET, model_names=None, hyperparams=None):
        """
        Fit every requested model type

        Parameters:
        -----------
        train_df : pandas.DataFrame
            Prepared, imputed training subset
        label : str
            Label column
        model_names : list of str
            Registry identifiers to fit
        hyperparams : dict, optional
            Per-model hyperparameters keyed by identifier

        Returns:
        --------
        dict
            Model identifier -> TrainedModel, in fitting order
        """
        model_names = model_names or config.MODEL_NAMES
        hyperparams = hyperparams or {}
        logger.info(f"Training {len(model_names)} models: {model_names}")

        for model_name in model_names:
            logger.info(f"Training {model_name}...")
            try:
                self.models[model_name] = fit_model(
                    model_name,
                    train_df,
                    label=label,
                    training_config=self.training_config,
                    pool=self.pool,
                    **hyperparams.get(model_name, {}),
                )
            except (ModelFitFailure, UnknownModelError) as e:
                logger.error(f"Error training {model_name}: {e}", exc_info=True)
                if not isinstance(e, ModelFitFailure):
                    e = ModelFitFailure(model_name, e)
                self.failures[model_name] = e

        logger.info(f"Trained {len(self.models)} models, {len(self.failures)} failed")
        return dict(self.models)

    def summary(self):
        """Cross-validation accuracy of every fitted model."""
        return pd.DataFrame([
            {'model': m.name, 'cv_accuracy': m.cv_accuracy, 'cv_std': m.cv_std}
            for m in self.models.values()
        ])

    def save_model(self, model):
        """Persist a trained model with joblib"""
        if not os.path.exists(self.model_dir):
            os.makedirs(self.model_dir)
        model_path = os.path.join(self.model_dir, f'{model.name}.pkl')
        joblib.dump(model, model_path)
        logger.info(f"Saved {model.name} to {model_path}")
        return model_path
