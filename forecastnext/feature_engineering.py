"""
Turn a row set into numeric training vectors for tree models.

Tree ensembles have no notion of time, so every temporal signal is passed in
as an explicit column: the row position itself as a trend term, plus two
sine/cosine pairs at fixed periods. Row position is treated as a uniform time
step whatever the real datetime values are.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from forecastnext.utilities import _to_number

logger = logging.getLogger(__name__)

DAILY_PERIOD = 24
WEEKLY_PERIOD = 168


@dataclass(frozen=True)
class FeatureBundle:
    """
    Model inputs derived from one row set.

    Parameters
    ----------
    X : np.ndarray
        2-D float array with one feature vector per input row.
    y : np.ndarray
        1-D float array of targets, aligned with X.
    last_feature_row : np.ndarray
        1-D float array describing the step after the last row.
    feature_names : list of strings
        Column labels for X.
    """

    X: np.ndarray
    y: np.ndarray
    last_feature_row: np.ndarray
    feature_names: list


def _ensure_records(rows):
    if isinstance(rows, pd.DataFrame):
        return rows.to_dict(orient="records")
    return list(rows)


def _get_feature_keys(first_row, datetime_column, target):
    """Every key of the first row except the datetime and target columns"""
    return [key for key in first_row.keys() if key not in (datetime_column, target)]


def calc_time_features(t) -> list:
    """Return [t, sin/cos at DAILY_PERIOD, sin/cos at WEEKLY_PERIOD] for index t"""
    daily = 2 * np.pi * t / DAILY_PERIOD
    weekly = 2 * np.pi * t / WEEKLY_PERIOD

    return [
        float(t),
        np.sin(daily),
        np.cos(daily),
        np.sin(weekly),
        np.cos(weekly),
    ]


def _build_feature_vector(row, feature_keys, t) -> list:
    # keys missing from this row coerce to nan
    return [_to_number(row.get(key)) for key in feature_keys] + calc_time_features(t)


def feature_names(rows, datetime_column, target) -> list:
    """Column labels matching the vectors produced by build_features"""
    records = _ensure_records(rows)
    assert records, "Need at least one row to name features"

    return _get_feature_keys(records[0], datetime_column, target) + [
        "t",
        f"sin_{DAILY_PERIOD}",
        f"cos_{DAILY_PERIOD}",
        f"sin_{WEEKLY_PERIOD}",
        f"cos_{WEEKLY_PERIOD}",
    ]


def build_features(rows, datetime_column, target) -> FeatureBundle:
    """
    Build X, y and the next-step feature vector from a row set.

    Feature columns are every key of the *first* row other than
    datetime_column and target, kept in their original order, followed by the
    row index and four seasonal terms. Later rows missing one of those keys
    get nan in its place and extra keys are ignored.

    The next-step vector uses t = len(rows) and carries the last row's
    feature values forward unchanged.

    Parameters
    ----------
    rows : sequence of mappings or pd.DataFrame
        The row set in time order.
    datetime_column : str or None
        Column excluded from the features. May be None.
    target : str
        Column used as y.

    Raises
    ----------
    ValueError
        If rows is empty.
    """
    records = _ensure_records(rows)

    if not records:
        raise ValueError("Can't build features from an empty row set")

    feature_keys = _get_feature_keys(records[0], datetime_column, target)
    names = feature_names(records, datetime_column, target)

    if any(set(row.keys()) != set(records[0].keys()) for row in records[1:]):
        logger.debug(
            "Rows don't all share the first row's columns; features use the first row's keys"
        )

    X = np.array(
        [_build_feature_vector(row, feature_keys, t) for t, row in enumerate(records)],
        dtype=float,
    ).reshape(len(records), len(names))

    y = np.array([_to_number(row.get(target)) for row in records], dtype=float)

    last_feature_row = np.array(
        _build_feature_vector(records[-1], feature_keys, len(records)), dtype=float
    )

    logger.debug(
        f"Built features: X={X.shape}, y={y.shape}, columns={names}, "
        f"missing values in X={int(np.isnan(X).sum())}"
    )

    return FeatureBundle(
        X=X, y=y, last_feature_row=last_feature_row, feature_names=names
    )
