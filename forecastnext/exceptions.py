"""
Exceptions raised by forecastnext.
"""


class ForecastNextError(Exception):
    """Base class for all forecastnext errors"""


class ParseError(ForecastNextError, ValueError):
    """The input file is empty, malformed, or of an unsupported type."""


class ModelInitError(ForecastNextError, RuntimeError):
    """The model class couldn't be obtained or constructed."""


class TrainError(ForecastNextError, RuntimeError):
    """The model failed to train."""


class PredictError(ForecastNextError, RuntimeError):
    """A prediction was requested from a model that hasn't been trained."""
