import logging
import os
import sys

from joblib import cpu_count, parallel_config
from joblib.externals.loky import get_reusable_executor

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_file=None, level=logging.INFO):
    """Configure the root logger once for a pipeline run."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    return logging.getLogger('titanic_survival')


def setup_directories(*directories):
    """Create output directories for the pipeline"""
    for directory in directories:
        if directory and not os.path.exists(directory):
            os.makedirs(directory)
            logger.info(f"Created directory: {directory}")


def default_worker_count(cap=None):
    """Available processing units minus one, capped, never below one."""
    workers = cpu_count() - 1
    if cap is not None:
        workers = min(workers, cap)
    return max(1, workers)


class WorkerPool:
    """
    Scoped joblib worker pool shared by every model fit of a run.

    Entering the pool installs a joblib parallel configuration sized to
    ``n_jobs``; leaving it restores the previous configuration and shuts
    down the reusable loky executor, if a parallel call ran, so no workers
    outlive the run.

    Parameters:
    -----------
    max_workers : int, optional
        Upper bound on the number of workers
    backend : str
        joblib backend name
    """

    def __init__(self, max_workers=None, backend='loky'):
        self.n_jobs = default_worker_count(max_workers)
        self.backend = backend
        self._config = None
        self.dispatched = False

    @property
    def active(self):
        return self._config is not None

    def __enter__(self):
        logger.info(f"Acquiring worker pool: backend={self.backend}, n_jobs={self.n_jobs}")
        self._config = parallel_config(backend=self.backend, n_jobs=self.n_jobs)
        self._config.__enter__()
        return self

    def jobs(self):
        """Worker count for a parallel call made inside the pool's scope."""
        if self.n_jobs > 1:
            self.dispatched = True
        return self.n_jobs

    def __exit__(self, exc_type, exc_value, traceback):
        try:
            self._config.__exit__(exc_type, exc_value, traceback)
        finally:
            self._config = None
            # only tear down an executor that this pool's calls could have started
            if self.backend == 'loky' and self.dispatched:
                get_reusable_executor().shutdown(wait=True)
                self.dispatched = False
            logger.info("Worker pool released")
        return False
