import logging

import numpy as np
import pandas as pd
import pandas.testing as pdt
import pytest

from titanic_survival import config
from titanic_survival.feature_engineering import FeaturePreparer, missing_summary, select_columns

COLUMNS = config.FEATURES + [config.TARGET]


@pytest.fixture
def preparer(passengers):
    return FeaturePreparer(columns=COLUMNS, categorical=config.CATEGORICAL_FEATURES).fit(passengers)


def test_select_columns_keeps_allow_list_order():
    df = pd.DataFrame({'b': [1], 'a': [2], 'c': [3]})

    selected = select_columns(df, ['a', 'b', 'unknown'])

    assert selected.columns.tolist() == ['a', 'b']


def test_missing_summary_only_reports_missing_columns():
    df = pd.DataFrame({'a': [1, np.nan, np.nan], 'b': [1, 2, 3]})

    assert missing_summary(df).to_dict() == {'a': 2}


def test_transform_columns(preparer, passengers):
    prepared = preparer.transform(passengers)

    assert prepared.columns.tolist() == [
        'Pclass', 'Sex_male', 'Age', 'SibSp', 'Parch', 'Fare',
        'Embarked_C', 'Embarked_Q', 'Embarked_S', 'Survived',
    ]
    assert 'Name' not in prepared.columns
    assert prepared.index.equals(passengers.index)


def test_indicators_exclusive_and_exhaustive(preparer, passengers):
    prepared = preparer.transform(passengers)
    embarked = prepared[['Embarked_C', 'Embarked_Q', 'Embarked_S']].sum(axis=1)

    observed = passengers['Embarked'].notnull()
    assert (embarked[observed] == 1).all()
    assert (embarked[~observed] == 0).all()


def test_both_indicators_kept_when_requested(passengers):
    preparer = FeaturePreparer(columns=COLUMNS, categorical=['Sex'], drop_binary_indicator=False)
    prepared = preparer.fit_transform(passengers)

    assert (prepared['Sex_female'] + prepared['Sex_male'] == 1).all()


def test_unseen_and_missing_levels_encode_as_zeros(preparer):
    new = pd.DataFrame({
        'Pclass': [1, 2], 'Sex': ['female', 'male'], 'Age': [20.0, np.nan],
        'SibSp': [0, 1], 'Parch': [0, 0], 'Fare': [10.0, 20.0], 'Embarked': ['X', np.nan],
    }, index=pd.Index([900, 901], name='PassengerId'))

    prepared = preparer.transform(new)

    assert prepared[['Embarked_C', 'Embarked_Q', 'Embarked_S']].to_numpy().sum() == 0
    assert prepared['Sex_male'].tolist() == [0, 1]
    assert config.TARGET not in prepared.columns


def test_transform_is_deterministic(preparer, passengers):
    first = preparer.transform(passengers)
    second = preparer.transform(passengers)
    reduced = preparer.transform(select_columns(passengers, COLUMNS))

    pdt.assert_frame_equal(first, second)
    pdt.assert_frame_equal(first, reduced)


def test_category_mapping_learned_from_training_table(passengers):
    only_southampton = passengers[passengers['Embarked'] == 'S']
    preparer = FeaturePreparer(columns=COLUMNS, categorical=['Embarked']).fit(passengers)

    prepared = preparer.transform(only_southampton)

    assert {'Embarked_C', 'Embarked_Q', 'Embarked_S'} <= set(prepared.columns)
    assert (prepared['Embarked_S'] == 1).all()


def test_feature_names_out(preparer, passengers):
    assert preparer.get_feature_names_out() == preparer.transform(passengers).columns.tolist()


def test_missing_binary_categorical_is_logged(preparer, caplog):
    new = pd.DataFrame({
        'Pclass': [1, 3], 'Sex': [np.nan, 'male'], 'Age': [20.0, 30.0],
        'SibSp': [0, 1], 'Parch': [0, 0], 'Fare': [10.0, 20.0], 'Embarked': [np.nan, 'S'],
    }, index=pd.Index([900, 901], name='PassengerId'))

    with caplog.at_level(logging.WARNING, logger='titanic_survival.feature_engineering'):
        prepared = preparer.transform(new)

    assert prepared['Sex_male'].tolist() == [0, 1]
    warnings = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert 'missing Sex encode as female' in warnings[0]
