import logging
import os

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from . import config
from .feature_engineering import missing_summary

logger = logging.getLogger(__name__)


class ExploratoryAnalysis:
    """
    Exploratory analysis of the passenger data.
    Writes summary statistics and plots to the results directory.
    """

    def __init__(self, output_dir=config.RESULTS_DIR):
        self.output_dir = output_dir
        self.plots_dir = os.path.join(output_dir, 'eda_plots')

        for directory in [self.output_dir, self.plots_dir]:
            if not os.path.exists(directory):
                os.makedirs(directory)

        logger.info("EDA component initialized")

    def run_eda(self, raw_df, prepared_df=None, target_col=config.TARGET):
        """
        Run exploratory data analysis

        Parameters:
        -----------
        raw_df : pandas.DataFrame
            The training table as loaded
        prepared_df : pandas.DataFrame, optional
            The encoded training table, used for the pairwise plot
        target_col : str
            The name of the target column
        """
        logger.info(f"Running EDA on dataset with shape {raw_df.shape}")

        stats_file = os.path.join(self.output_dir, 'data_stats.txt')
        with open(stats_file, 'w') as f:
            f.write(f"Dataset Shape: {raw_df.shape}\n\n")
            f.write("Data Types:\n")
            f.write(str(raw_df.dtypes) + "\n\n")
            f.write("Summary Statistics:\n")
            f.write(str(raw_df.describe()) + "\n\n")
            f.write("Missing Values:\n")
            f.write(str(missing_summary(raw_df)) + "\n\n")

        logger.info(f"Basic stats written to {stats_file}")

        if target_col in raw_df.columns:
            self._analyze_target_distribution(raw_df, target_col)
            if prepared_df is not None:
                self._pairwise_plot(prepared_df, target_col)

        logger.info("EDA completed successfully")

    def _analyze_target_distribution(self, df, target_col):
        """Analyze target variable distribution"""
        target_counts = df[target_col].value_counts().sort_index()
        class_ratios = target_counts / len(df)

        plt.figure(figsize=(10, 6))
        ax = sns.countplot(x=target_col, data=df, palette='viridis')
        for i, count in enumerate(target_counts):
            ax.text(i, count + 5, f"{count} ({class_ratios.iloc[i]:.1%})", ha='center', fontweight='bold')

        plt.title('Survival Distribution')
        plt.xlabel('Survived (1 = Yes, 0 = No)')
        plt.ylabel('Count')
        plt.savefig(os.path.join(self.plots_dir, 'target_distribution.png'))
        plt.close()

        logger.info(f"Target distribution: {dict(target_counts)}")

        pd.DataFrame({
            'Class': target_counts.index,
            'Count': target_counts.values,
            'Percentage': class_ratios.values * 100
        }).to_csv(os.path.join(self.output_dir, 'target_stats.csv'), index=False)

    def _pairwise_plot(self, df, target_col):
        """Pairwise feature plot coloured by survival"""
        logger.info("Creating pairwise feature plot")

        plot_df = df.dropna().copy()
        plot_df[target_col] = plot_df[target_col].astype(int).astype(str)
        grid = sns.pairplot(plot_df, hue=target_col, corner=True, plot_kws={'alpha': 0.5, 's': 15})
        grid.savefig(os.path.join(self.plots_dir, 'pairwise_features.png'))
        plt.close('all')
