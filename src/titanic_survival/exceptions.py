"""Error types raised by the pipeline."""


class PipelineError(Exception):
    """Base class for pipeline errors."""


class DataParseError(PipelineError, ValueError):
    """An input CSV could not be parsed into a table."""


class InsufficientDataError(PipelineError, ValueError):
    """Too few fully observed rows to fit the imputer."""


class SchemaMismatchError(PipelineError, ValueError):
    """A prepared table's columns disagree with the fitted columns."""


class UnknownModelError(PipelineError, KeyError):
    """A model identifier is not in the registry."""


class ModelFitFailure(PipelineError):
    """A single model failed while fitting."""

    def __init__(self, model_name, cause):
        self.model_name = model_name
        self.cause = cause
        super().__init__(f"{model_name} failed to fit: {cause}")
