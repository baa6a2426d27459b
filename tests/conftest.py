import matplotlib

matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest


def make_passengers(n=60, seed=0, labeled=True, start_id=1):
    rng = np.random.RandomState(seed)
    sex = rng.choice(['male', 'female'], size=n)
    pclass = rng.choice([1, 2, 3], size=n)
    age = rng.normal(30, 12, size=n).clip(1, 80).round(1)
    age[rng.rand(n) < 0.2] = np.nan
    embarked = rng.choice(['S', 'C', 'Q'], size=n).astype(object)
    embarked[rng.rand(n) < 0.05] = np.nan

    df = pd.DataFrame({
        'PassengerId': np.arange(start_id, start_id + n),
        'Pclass': pclass,
        'Name': [f'Passenger {i}' for i in range(n)],
        'Sex': sex,
        'Age': age,
        'SibSp': rng.randint(0, 4, size=n),
        'Parch': rng.randint(0, 3, size=n),
        'Ticket': [f'T{i}' for i in range(n)],
        'Fare': (100 / pclass + rng.rand(n) * 20).round(2),
        'Cabin': np.nan,
        'Embarked': embarked,
    })
    if labeled:
        survived = ((sex == 'female') | (pclass == 1)).astype(int)
        flip = rng.rand(n) < 0.1
        survived[flip] = 1 - survived[flip]
        # keep both classes well represented for stratified splitting
        survived[:4] = [0, 0, 1, 1]
        df.insert(1, 'Survived', survived)
    return df


@pytest.fixture
def passengers():
    return make_passengers(n=60, seed=0).set_index('PassengerId')


@pytest.fixture
def unlabeled_passengers():
    return make_passengers(n=12, seed=1, labeled=False, start_id=892).set_index('PassengerId')


@pytest.fixture
def passenger_csvs(tmp_path):
    train_path = tmp_path / 'train.csv'
    test_path = tmp_path / 'test.csv'
    make_passengers(n=80, seed=3).to_csv(train_path, index=False)
    make_passengers(n=15, seed=4, labeled=False, start_id=892).to_csv(test_path, index=False)
    return str(train_path), str(test_path)
