import math

import numpy as np


def _assert_features_in_list(features, list_to_check, message):
    """
    Throw assertion error if an element in a list of features doesn't exist
    in another list
    """
    intersection = [feature for feature in features if feature not in list_to_check]
    assert not intersection, f"{message}: {intersection}"


def _is_missing(value):
    """True for None, NaN, and empty or whitespace-only strings"""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, float):
        return math.isnan(value)
    try:
        return bool(np.isnan(value))
    except (TypeError, ValueError):
        return False


def _to_number(value) -> float:
    """
    Coerce a raw cell value to a float. Missing or unparseable values become
    np.nan so that they can be told apart from a real zero. Empty and
    whitespace-only strings are missing too, so a blank cell is never read
    as 0.
    """
    if _is_missing(value):
        return np.nan

    if isinstance(value, (bool, np.bool_)):
        return float(value)

    try:
        return float(value)
    except (TypeError, ValueError):
        return np.nan


def _clean_cell(value):
    """Convert pandas/numpy scalars to plain python values, with NaN/NaT as None"""
    if value is None:
        return None

    try:
        if value != value:  # NaN and NaT
            return None
    except (TypeError, ValueError):
        pass

    if isinstance(value, np.generic):
        return value.item()

    return value
