import os

import numpy as np
import pandas as pd
import pytest

from titanic_survival.model_evaluation import ModelEvaluator, evaluate
from titanic_survival.train_model import TrainingConfig, fit_model, stratified_split

FAST = TrainingConfig(folds=2, repeats=1, seed=0)


@pytest.fixture
def split_table():
    rng = np.random.RandomState(11)
    n = 60
    label = rng.randint(0, 2, size=n)
    label[:2] = [0, 1]
    df = pd.DataFrame({'x1': rng.normal(size=n) + label, 'x2': rng.normal(size=n), 'Survived': label})
    return stratified_split(df, 'Survived', train_fraction=0.75, seed=0)


@pytest.fixture
def models(split_table):
    train_df, _ = split_table
    return {
        name: fit_model(name, train_df, 'Survived', training_config=FAST)
        for name in ['constant', 'decision_tree']
    }


def test_confusion_matrix_rows_match_true_counts(models, split_table):
    _, test_df = split_table

    for model in models.values():
        result = evaluate(model, test_df)
        counts = test_df['Survived'].value_counts()

        assert 0.0 <= result.accuracy <= 1.0
        for label, row in result.confusion_matrix.iterrows():
            assert row.sum() == counts.get(label, 0)
        assert result.confusion_matrix.to_numpy().sum() == len(test_df)


def test_accuracy_is_diagonal_share(models, split_table):
    _, test_df = split_table
    result = evaluate(models['decision_tree'], test_df)

    cm = result.confusion_matrix.to_numpy()
    assert result.accuracy == pytest.approx(np.trace(cm) / cm.sum())


def test_decision_tree_fits_training_data(models, split_table):
    train_df, _ = split_table

    assert evaluate(models['decision_tree'], train_df, dataset='train').accuracy == pytest.approx(1.0)


def test_compare_tabulates_both_subsets(models, split_table, tmp_path):
    train_df, test_df = split_table
    evaluator = ModelEvaluator(results_dir=str(tmp_path), plots=False)

    comparison = evaluator.compare(models, train_df, test_df)

    assert set(comparison['model']) == {'constant', 'decision_tree'}
    assert comparison['test_accuracy'].is_monotonic_decreasing
    np.testing.assert_allclose(
        comparison['overfit_gap'], comparison['train_accuracy'] - comparison['test_accuracy']
    )
    assert os.path.exists(tmp_path / 'model_comparison.csv')
    assert set(evaluator.results['constant']) == {'train', 'test'}


def test_compare_writes_plots(models, split_table, tmp_path):
    train_df, test_df = split_table
    evaluator = ModelEvaluator(results_dir=str(tmp_path), plots=True)

    evaluator.compare(models, train_df, test_df)

    plots = os.listdir(tmp_path / 'evaluation_plots')
    assert 'model_comparison_accuracy.png' in plots
    assert 'decision_tree_confusion_matrix.png' in plots
