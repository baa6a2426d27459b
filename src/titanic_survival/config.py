"""
Configuration for the Titanic survival pipeline.
Stores constants like file paths, feature names, and model parameters.
"""

# --- File Paths ---
TRAIN_DATA_PATH = "data/train.csv"
TEST_DATA_PATH = "data/test.csv"
SUBMISSION_PATH = "submissions/submission.csv"
MODEL_DIR = "models"
RESULTS_DIR = "results"
LOG_FILE = "titanic_model.log"

# --- Columns ---
TARGET = 'Survived'
ID_COLUMN = 'PassengerId'
FEATURES = ['Pclass', 'Sex', 'Age', 'SibSp', 'Parch', 'Fare', 'Embarked']
CATEGORICAL_FEATURES = ['Sex', 'Embarked']

# --- Imputation & Split ---
IMPUTE_NEIGHBORS = 5
TRAIN_FRACTION = 0.8
RANDOM_SEED = 42

# --- Training ---
CV_METHOD = 'repeatedcv'
CV_FOLDS = 10
CV_REPEATS = 3
MAX_WORKERS = 8

MODEL_NAMES = [
    'knn',
    'decision_tree',
    'boosted_ensemble',
    'neural_net',
    'linear_svm',
    'random_forest',
    'bagging',
]

# Model whose predictions are written to the submission file
SUBMISSION_MODEL = 'random_forest'
