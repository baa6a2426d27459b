import logging
import os
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from sklearn.metrics import accuracy_score, confusion_matrix

from . import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    model_name: str
    dataset: str
    confusion_matrix: pd.DataFrame
    accuracy: float


def evaluate(model, df, dataset='test'):
    """
    Confusion matrix and accuracy of a trained model on a labeled table

    Rows of the confusion matrix are true labels, columns predicted labels.

    Parameters:
    -----------
    model : TrainedModel
        Fitted model
    df : pandas.DataFrame
        Labeled, prepared table
    dataset : str
        Name of the table, used in logs and results

    Returns:
    --------
    EvaluationResult
    """
    y_true = df[model.label].astype(int).to_numpy()
    y_pred = model.predict(df)

    labels = sorted(set(np.unique(y_true)) | set(np.unique(y_pred)))
    cm = pd.DataFrame(
        confusion_matrix(y_true, y_pred, labels=labels),
        index=pd.Index(labels, name='actual'),
        columns=pd.Index(labels, name='predicted'),
    )
    accuracy = float(accuracy_score(y_true, y_pred)) if len(y_true) else 0.0

    logger.info(f"{model.name} {dataset} accuracy: {accuracy:.4f}")
    return EvaluationResult(model.name, dataset, cm, accuracy)


class ModelEvaluator:
    """
    Evaluates every trained model on the training and the held-out subsets
    and tabulates the results. The gap between training and held-out
    accuracy flags over-fitting.
    """

    def __init__(self, results_dir=config.RESULTS_DIR, plots=True):
        """
        Initialize the model evaluator

        Parameters:
        -----------
        results_dir : str
            Directory to save evaluation results
        plots : bool
            Whether to save confusion matrix and comparison plots
        """
        self.results_dir = results_dir
        self.plots = plots
        self.plots_dir = os.path.join(results_dir, 'evaluation_plots')

        directories = [self.results_dir, self.plots_dir] if plots else [self.results_dir]
        for directory in directories:
            if not os.path.exists(directory):
                os.makedirs(directory)

        self.results = {}
        logger.info("ModelEvaluator initialized")

    def compare(self, models, train_df, test_df):
        """
        Evaluate each model on both subsets

        Parameters:
        -----------
        models : dict
            Model identifier -> TrainedModel
        train_df : pandas.DataFrame
            Training subset
        test_df : pandas.DataFrame
            Held-out evaluation subset

        Returns:
        --------
        pandas.DataFrame
            One row per model, sorted by held-out accuracy
        """
        rows = []
        for model_name, model in models.items():
            train_result = evaluate(model, train_df, dataset='train')
            test_result = evaluate(model, test_df, dataset='test')
            self.results[model_name] = {'train': train_result, 'test': test_result}

            gap = train_result.accuracy - test_result.accuracy
            rows.append({
                'model': model_name,
                'cv_accuracy': model.cv_accuracy,
                'train_accuracy': train_result.accuracy,
                'test_accuracy': test_result.accuracy,
                'overfit_gap': gap,
            })
            logger.info(f"{model_name}: train={train_result.accuracy:.4f} "
                        f"test={test_result.accuracy:.4f} gap={gap:+.4f}")
            logger.info(f"{model_name} test confusion matrix:\n{test_result.confusion_matrix}")

            if self.plots:
                self._plot_confusion_matrix(test_result)

        comparison = pd.DataFrame(
            rows, columns=['model', 'cv_accuracy', 'train_accuracy', 'test_accuracy', 'overfit_gap']
        )
        comparison = comparison.sort_values('test_accuracy', ascending=False).reset_index(drop=True)

        comparison.to_csv(os.path.join(self.results_dir, 'model_comparison.csv'), index=False)
        logger.info(f"Model comparison:\n{comparison}")

        if self.plots and len(comparison) > 0:
            self._plot_model_comparison(comparison)

        return comparison

    def _plot_confusion_matrix(self, result):
        plt.figure(figsize=(8, 6))
        sns.heatmap(result.confusion_matrix, annot=True, fmt='d', cmap='Blues')
        plt.xlabel('Predicted')
        plt.ylabel('Actual')
        plt.title(f'Confusion Matrix - {result.model_name} ({result.dataset})')
        plt.savefig(os.path.join(self.plots_dir, f'{result.model_name}_confusion_matrix.png'))
        plt.close()

    def _plot_model_comparison(self, comparison):
        logger.info("Creating model comparison plot")

        long_df = comparison.melt(
            id_vars='model', value_vars=['train_accuracy', 'test_accuracy'],
            var_name='subset', value_name='accuracy'
        )

        plt.figure(figsize=(12, 6))
        sns.barplot(x='model', y='accuracy', hue='subset', data=long_df, palette='viridis')
        plt.title('Model Comparison - Accuracy')
        plt.xlabel('Model')
        plt.ylabel('Accuracy')
        plt.ylim(0, 1)
        plt.xticks(rotation=45)
        plt.tight_layout()
        plt.savefig(os.path.join(self.plots_dir, 'model_comparison_accuracy.png'))
        plt.close()
