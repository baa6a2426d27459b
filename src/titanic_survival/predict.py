import logging
import os

import numpy as np
import pandas as pd

from . import config
from .exceptions import SchemaMismatchError

logger = logging.getLogger(__name__)


def predict_submission(model, df, id_column=config.ID_COLUMN, target=config.TARGET):
    """
    Predict labels for a prepared, unlabeled table

    The passenger identifiers are taken from the table's index.

    Parameters:
    -----------
    model : TrainedModel
        Model chosen for the submission
    df : pandas.DataFrame
        Table prepared and imputed with the training-time preparer/imputer
    id_column : str
        Name of the identifier column in the output
    target : str
        Name of the prediction column in the output

    Returns:
    --------
    pandas.DataFrame
        Submission dataframe
    """
    logger.info(f"Making predictions with {model.name} on {len(df)} rows")

    y_pred = model.predict(df)

    logger.info(f"Positive predictions: {np.sum(y_pred == 1)} ({np.mean(y_pred == 1):.2%})")
    return pd.DataFrame({id_column: df.index.to_numpy(), target: y_pred.astype(int)})


def write_submission(model, df, output_path=config.SUBMISSION_PATH, id_column=config.ID_COLUMN,
                     target=config.TARGET):
    """
    Predict with an explicitly chosen model and write the submission CSV

    Raises SchemaMismatchError when the prepared columns differ from the
    model's training columns.

    Returns:
    --------
    pandas.DataFrame
        Submission dataframe that was written
    """
    submission = predict_submission(model, df, id_column=id_column, target=target)

    output_dir = os.path.dirname(output_path)
    if output_dir:
        os.makedirs(output_dir, exist_ok=True)

    submission.to_csv(output_path, index=False)
    logger.info(f"Submission saved to {output_path}")
    logger.info(f"Submission sample:\n{submission.head()}")
    return submission


def check_submission_schema(train_df, df, label=config.TARGET):
    """
    Raise SchemaMismatchError unless df carries exactly the training feature columns

    Parameters:
    -----------
    train_df : pandas.DataFrame
        Prepared training subset (label included)
    df : pandas.DataFrame
        Prepared, imputed unlabeled table
    label : str
        Label column, ignored on both sides
    """
    expected = [col for col in train_df.columns if col != label]
    actual = [col for col in df.columns if col != label]
    missing = [col for col in expected if col not in actual]
    extra = [col for col in actual if col not in expected]
    if missing or extra:
        logger.error(f"Submission data columns do not match training: missing={missing}, unexpected={extra}")
        raise SchemaMismatchError(
            f"Prepared test columns do not match training columns (missing={missing}, unexpected={extra})"
        )
