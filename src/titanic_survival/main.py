import argparse
import json
import logging
import os
from datetime import datetime

from . import config
from .data_loader import load_data
from .eda import ExploratoryAnalysis
from .exceptions import ModelFitFailure
from .feature_engineering import FeaturePreparer
from .imputer import NeighborImputer
from .model_evaluation import ModelEvaluator
from .predict import check_submission_schema, write_submission
from .train_model import ModelTrainer, TrainingConfig, stratified_split
from .utils import WorkerPool, setup_directories, setup_logging

logger = logging.getLogger('titanic_survival.main')


def run_full_pipeline(train_path=config.TRAIN_DATA_PATH, test_path=config.TEST_DATA_PATH,
                      submission_path=config.SUBMISSION_PATH, model_names=None,
                      submission_model=config.SUBMISSION_MODEL, training_config=None,
                      hyperparams=None, max_workers=config.MAX_WORKERS,
                      model_dir=config.MODEL_DIR, results_dir=config.RESULTS_DIR,
                      perform_eda=True, plots=True):
    """
    Run the complete pipeline: load, prepare, split, impute, train, compare,
    predict and write the submission

    Parameters:
    -----------
    train_path : str
        Path to labeled training data
    test_path : str
        Path to unlabeled test data
    submission_path : str
        Path to save final submission
    model_names : list of str
        Model identifiers to train and compare
    submission_model : str
        Identifier of the model used for the submission
    training_config : TrainingConfig
        Resampling configuration shared by every model
    hyperparams : dict, optional
        Per-model hyperparameters keyed by identifier
    max_workers : int
        Cap on the worker pool size
    model_dir : str
        Directory for the saved submission model
    results_dir : str
        Directory for comparison tables, plots and the experiment record
    perform_eda : bool
        Whether to perform exploratory data analysis
    plots : bool
        Whether to save evaluation plots

    Returns:
    --------
    tuple
        (submission, comparison, experiment_info)
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    logger.info(f"Starting Titanic survival pipeline at {timestamp}")

    model_names = list(model_names or config.MODEL_NAMES)
    if submission_model not in model_names:
        model_names.append(submission_model)
    training_config = training_config or TrainingConfig()

    # Step 1: Load both inputs before anything is written
    logger.info("Step 1: Loading training and test data")
    train_raw = load_data(train_path, index_col=config.ID_COLUMN)
    test_raw = load_data(test_path, index_col=config.ID_COLUMN)

    # Step 2: Prepare features
    logger.info("Step 2: Preparing features")
    preparer = FeaturePreparer(columns=config.FEATURES + [config.TARGET],
                               categorical=config.CATEGORICAL_FEATURES)
    prepared = preparer.fit_transform(train_raw)

    # Step 3: Split, then impute with a single fitted imputer
    logger.info("Step 3: Splitting and imputing")
    train_df, test_df = stratified_split(prepared, label=config.TARGET,
                                         train_fraction=config.TRAIN_FRACTION,
                                         seed=training_config.seed)
    imputer = NeighborImputer(n_neighbors=config.IMPUTE_NEIGHBORS, exclude=[config.TARGET])
    imputer.fit(train_df)
    train_df = imputer.transform(train_df)
    test_df = imputer.transform(test_df)

    # The unlabeled data goes through the same fitted preparer and imputer
    submission_features = imputer.transform(preparer.transform(test_raw))
    check_submission_schema(train_df, submission_features, label=config.TARGET)

    setup_directories(model_dir, results_dir)

    if perform_eda:
        logger.info("Step 3b: Performing exploratory data analysis")
        ExploratoryAnalysis(output_dir=results_dir).run_eda(train_raw, prepared)

    with WorkerPool(max_workers=max_workers) as pool:
        # Step 4: Train models
        logger.info("Step 4: Training models")
        trainer = ModelTrainer(training_config=training_config, pool=pool, model_dir=model_dir)
        models = trainer.train_all(train_df, label=config.TARGET, model_names=model_names,
                                   hyperparams=hyperparams)

        # Step 5: Compare models
        logger.info("Step 5: Evaluating models")
        evaluator = ModelEvaluator(results_dir=results_dir, plots=plots)
        comparison = evaluator.compare(models, train_df, test_df)

        if submission_model not in models:
            cause = trainer.failures.get(submission_model)
            raise ModelFitFailure(submission_model, cause.cause if cause else 'not trained')
        model = models[submission_model]
        trainer.save_model(model)

        # Step 6: Predict on the unlabeled data with the training-time preparer and imputer
        logger.info(f"Step 6: Making predictions with {submission_model}")
        submission = write_submission(model, submission_features, submission_path)

    # Step 7: Experiment record
    experiment_info = {
        'timestamp': timestamp,
        'submission_model': submission_model,
        'models': list(models),
        'failures': {name: str(e) for name, e in trainer.failures.items()},
        'feature_columns': list(model.feature_columns),
        'train_samples': len(train_raw),
        'test_samples': len(test_raw),
        'positive_rate': float(submission[config.TARGET].mean()) if len(submission) else 0.0,
        'resampling': {
            'method': training_config.method,
            'folds': training_config.folds,
            'repeats': training_config.repeats,
            'workers': pool.n_jobs,
        },
        'comparison': comparison.to_dict(orient='records'),
    }

    experiment_path = os.path.join(results_dir, f'experiment_{timestamp}.json')
    with open(experiment_path, 'w') as f:
        json.dump(experiment_info, f, indent=4)

    logger.info("Pipeline completed successfully")
    return submission, comparison, experiment_info


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Titanic Survival Prediction Pipeline')

    parser.add_argument('--train', type=str, default=config.TRAIN_DATA_PATH,
                        help='Path to training data')
    parser.add_argument('--test', type=str, default=config.TEST_DATA_PATH,
                        help='Path to test data')
    parser.add_argument('--output', type=str, default=config.SUBMISSION_PATH,
                        help='Path to save submission file')
    parser.add_argument('--models', nargs='+', default=config.MODEL_NAMES,
                        help='Model identifiers to train and compare')
    parser.add_argument('--submission-model', type=str, default=config.SUBMISSION_MODEL,
                        help='Model used for the submission')
    parser.add_argument('--cv-method', choices=['repeatedcv', 'cv'], default=config.CV_METHOD,
                        help='Resampling method')
    parser.add_argument('--folds', type=int, default=config.CV_FOLDS,
                        help='Cross-validation folds')
    parser.add_argument('--repeats', type=int, default=config.CV_REPEATS,
                        help='Cross-validation repeats')
    parser.add_argument('--seed', type=int, default=config.RANDOM_SEED,
                        help='Random seed')
    parser.add_argument('--max-workers', type=int, default=config.MAX_WORKERS,
                        help='Cap on parallel workers')
    parser.add_argument('--skip-eda', action='store_true',
                        help='Skip exploratory data analysis')
    parser.add_argument('--log-file', type=str, default=config.LOG_FILE,
                        help='Log file path')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(args.log_file)

    training_config = TrainingConfig(method=args.cv_method, folds=args.folds, repeats=args.repeats,
                                     seed=args.seed)
    run_full_pipeline(
        train_path=args.train,
        test_path=args.test,
        submission_path=args.output,
        model_names=args.models,
        submission_model=args.submission_model,
        training_config=training_config,
        max_workers=args.max_workers,
        perform_eda=not args.skip_eda,
    )


if __name__ == "__main__":
    main()
