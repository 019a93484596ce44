import inspect
import logging
from typing import Protocol, runtime_checkable

import numpy as np

from forecastnext.exceptions import ModelInitError, PredictError, TrainError
from forecastnext.feature_engineering import build_features

logger = logging.getLogger(__name__)


@runtime_checkable
class ModelAdapter(Protocol):
    """
    What a regression backend needs to provide to be trained and queried.

    The class is constructed with a dict of hyperparameters. ``train`` may be
    a coroutine function; it's awaited before the model is used. ``free`` is
    optional and is called best-effort when the model is discarded.
    """

    def train(self, X, y):
        ...

    def predict(self, rows):
        ...


def get_model_params(indicator="default"):
    """
    Return a premade hyperparameter dictionary for modeling.

    Parameters
    ----------
    indicator : str, default "default"
        Used to specify which set of parameters to use. "default" trains 200
        shallow trees; "light" trains 50 and is handy for quick checks.
    """

    param_dict = {
        "default": {
            "booster": "gbtree",
            "objective": "reg:squarederror",
            "max_depth": 4,
            "learning_rate": 0.1,
            "min_child_weight": 1,
            "subsample": 0.8,
            "colsample_bytree": 1,
            "iterations": 200,
        },
        "light": {
            "booster": "gbtree",
            "objective": "reg:squarederror",
            "max_depth": 3,
            "learning_rate": 0.2,
            "min_child_weight": 1,
            "subsample": 1,
            "colsample_bytree": 1,
            "iterations": 50,
        },
    }

    assert (
        indicator in param_dict.keys()
    ), f"indicator should be one of {list(param_dict.keys())}"

    return dict(param_dict[indicator])


def _get_regression_lgbm(
    objective: str = "regression",
    importance_type: str = "gain",
    verbosity: int = -1,
    **kwargs,
):
    """Returns the normal L2 regression LGBM estimator for modeling"""
    import lightgbm as lgb

    estimator = lgb.LGBMRegressor(
        objective=objective,
        importance_type=importance_type,
        verbosity=verbosity,
        random_state=7,
        **kwargs,
    )

    return estimator


_BOOSTER_MAPPINGS = {"gbtree": "gbdt", "gbdt": "gbdt", "dart": "dart"}

_OBJECTIVE_MAPPINGS = {
    "reg:squarederror": "regression",
    "reg:linear": "regression",
    "reg:absoluteerror": "regression_l1",
    "reg:tweedie": "tweedie",
    "regression": "regression",
    "regression_l1": "regression_l1",
    "tweedie": "tweedie",
}

_PARAM_MAPPINGS = {
    "max_depth": "max_depth",
    "learning_rate": "learning_rate",
    "eta": "learning_rate",
    "min_child_weight": "min_child_weight",
    "min_child_samples": "min_child_samples",
    "subsample": "subsample",
    "colsample_bytree": "colsample_bytree",
    "iterations": "n_estimators",
    "n_estimators": "n_estimators",
    "num_leaves": "num_leaves",
    "reg_alpha": "reg_alpha",
    "reg_lambda": "reg_lambda",
}


def _translate_params(config: dict) -> dict:
    """
    Map a backend-neutral hyperparameter dict (booster, objective, eta,
    iterations, ...) onto LGBMRegressor keyword arguments.
    """
    params = {}

    for key, value in config.items():
        if key == "booster":
            assert (
                value in _BOOSTER_MAPPINGS.keys()
            ), f"booster should be one of {list(_BOOSTER_MAPPINGS.keys())}"
            params["boosting_type"] = _BOOSTER_MAPPINGS[value]
        elif key == "objective":
            assert (
                value in _OBJECTIVE_MAPPINGS.keys()
            ), f"objective should be one of {list(_OBJECTIVE_MAPPINGS.keys())}"
            params["objective"] = _OBJECTIVE_MAPPINGS[value]
        elif key in _PARAM_MAPPINGS:
            params[_PARAM_MAPPINGS[key]] = value
        else:
            logger.debug(f"Ignoring unrecognized model parameter {key!r}")

    # lightgbm only bags rows when subsample_freq is set
    if params.get("subsample", 1) < 1:
        params["subsample_freq"] = 1

    return params


class LightGBMBooster:
    """
    Gradient-boosted tree regressor backed by lightgbm.

    Parameters
    ----------
    config : dict, default None
        Backend-neutral hyperparameters, see get_model_params.
    """

    def __init__(self, config: dict = None):
        self.config = dict(config or {})
        self.params = _translate_params(self.config)
        self.estimator = None

    def train(self, X, y):
        X = np.asarray(X, dtype=float)
        y = np.asarray(y, dtype=float)

        # lightgbm rejects nan labels, so those rows sit out training
        labelled = ~np.isnan(y)
        if not labelled.any():
            raise ValueError("Every target value is missing; nothing to train on")
        if not labelled.all():
            logger.warning(
                f"Dropping {int((~labelled).sum())} rows with missing targets before training"
            )

        estimator = _get_regression_lgbm(**self.params)
        estimator.fit(X[labelled], y[labelled])

        self.estimator = estimator
        logger.info(
            f"Trained lightgbm on X={X[labelled].shape} with params {self.params}"
        )

    def predict(self, rows):
        if self.estimator is None:
            raise PredictError("Model must be trained before prediction. Call train() first.")

        rows = np.atleast_2d(np.asarray(rows, dtype=float))
        return self.estimator.predict(rows)

    def free(self):
        self.estimator = None


def _load_lightgbm():
    import lightgbm  # noqa: F401

    return LightGBMBooster


_BACKENDS = {"lightgbm": _load_lightgbm}


def register_backend(name: str, loader):
    """
    Make a model backend available to init_model_class.

    Parameters
    ----------
    name : str
        The name users pass as ``backend``.
    loader : callable
        Called with no arguments; returns (or returns an awaitable of) a class
        satisfying ModelAdapter.
    """
    _BACKENDS[name] = loader


async def init_model_class(backend: str = "lightgbm"):
    """
    Resolve the model class for a backend.

    Raises
    ----------
    ModelInitError
        If the backend is unknown or its runtime can't be loaded.
    """
    if backend not in _BACKENDS:
        raise ModelInitError(
            f"Unknown model backend {backend!r}; expected one of {list(_BACKENDS.keys())}"
        )

    logger.debug(f"Initializing model backend {backend!r}")

    try:
        model_class = _BACKENDS[backend]()
        if inspect.isawaitable(model_class):
            model_class = await model_class
    except Exception as e:
        raise ModelInitError(f"Couldn't load model backend {backend!r}: {e}") from e

    return model_class


def release_model(model):
    """Call model.free() if it has one. Failures are logged and ignored."""
    if model is None:
        return

    free = getattr(model, "free", None)
    if not callable(free):
        return

    try:
        free()
    except Exception:
        logger.warning("Failed to free model resources", exc_info=True)


INFERRED = object()


def _resolve_datetime_column(data, datetime_column):
    if datetime_column is INFERRED:
        return data.datetime_column
    return datetime_column


async def train_model(
    data,
    target: str,
    params: dict = None,
    model_class=None,
    backend: str = "lightgbm",
    datetime_column=INFERRED,
):
    """
    Build features from data and train a fresh model on them.

    Parameters
    ----------
    data : LoadedData
        The loaded table.
    target : str
        The column to predict.
    params : dict, default None
        Hyperparameters layered over get_model_params("default").
    model_class : class, default None
        A ModelAdapter class. If None, it's resolved with init_model_class.
    backend : str, default "lightgbm"
        Backend passed to init_model_class when model_class is None.
    datetime_column : str or None, default INFERRED
        Column left out of the features. Defaults to data.datetime_column;
        pass None to use every non-target column.

    Returns
    ----------
    The trained model, only once its train step has completed.

    Raises
    ----------
    ModelInitError
        If the model class can't be obtained or constructed.
    TrainError
        If training fails.
    """
    assert target in data.headers, f"Target {target!r} isn't one of {list(data.headers)}"

    datetime_column = _resolve_datetime_column(data, datetime_column)
    features = build_features(data.rows, datetime_column, target)

    if model_class is None:
        model_class = await init_model_class(backend)

    config = get_model_params("default")
    config.update(params or {})

    try:
        model = model_class(config)
    except Exception as e:
        raise ModelInitError(f"Couldn't construct {model_class!r}: {e}") from e

    logger.info(
        f"Training {type(model).__name__} on {features.X.shape[0]} rows "
        f"and {features.X.shape[1]} features to predict {target!r}"
    )

    try:
        result = model.train(features.X, features.y)
        if inspect.isawaitable(result):
            await result
    except Exception as e:
        release_model(model)
        raise TrainError(f"Training failed: {e}") from e

    return model


def predict_next(data, target: str, model, datetime_column=INFERRED) -> float:
    """
    Forecast the target one step past the last row of data.

    Parameters
    ----------
    data : LoadedData
        The same table the model was trained on.
    target : str
        The column the model was trained to predict.
    model : ModelAdapter
        A model whose train step has completed.
    datetime_column : str or None, default INFERRED
        The datetime column the model was trained with. Defaults to
        data.datetime_column.
    """
    datetime_column = _resolve_datetime_column(data, datetime_column)
    features = build_features(data.rows, datetime_column, target)

    prediction = model.predict([features.last_feature_row])
    values = np.atleast_1d(np.asarray(prediction, dtype=float))

    return float(values[0])


async def train(self) -> bool:
    """
    Train a model on the session's data and columns, enabling predict on success.

    Returns
    ----------
    True if a model was trained. On failure the session keeps no model,
    predict stays disabled, and the reason is in self.status. If the data or
    column choices change while training is in progress, the finished model
    is discarded and False is returned.
    """
    if self.data is None or not self.target:
        self._set_status("error: load data and choose a target before training")
        return False

    self.predict_enabled = False
    release_model(self.model)
    self.model = None

    data, datetime_column, target = self.data, self.datetime_column, self.target
    injected = self.model_class not in (None, self._resolved_model_class)

    try:
        if self.model_class is None:
            self._set_status(f"initializing {self.backend} ...")
            self.model_class = await init_model_class(self.backend)
            self._resolved_model_class = self.model_class

        self._set_status(f"training ({self.backend}) ...")
        model = await train_model(
            data,
            target,
            params=self.params,
            model_class=self.model_class,
            datetime_column=datetime_column,
        )
    except (ModelInitError, TrainError, ValueError) as e:
        logger.error(f"Training failed: {e}")
        self._set_status(f"error: failed to initialize or train model ({e})")
        return False

    if (
        self.data is not data
        or self.datetime_column != datetime_column
        or self.target != target
    ):
        release_model(model)
        logger.warning("Data or columns changed during training; discarding the model")
        return False

    self.model = model
    self.predict_enabled = True
    self._set_status(
        f"trained with {type(model).__name__ if injected else self.backend}"
    )
    return True


def predict(self):
    """
    Forecast the next step with the session's trained model.

    Returns
    ----------
    The forecast as a float, or None when no trained model is available or
    the prediction fails; self.status says which.
    """
    if not self.predict_enabled or self.model is None:
        self._set_status("error: train a model before predicting")
        return None

    try:
        yhat = predict_next(
            self.data, self.target, self.model, datetime_column=self.datetime_column
        )
    except Exception as e:
        logger.error(f"Prediction failed: {e}")
        self._set_status(f"error: prediction failed ({e})")
        return None

    self.last_prediction = yhat
    self._set_status("predicted")
    return yhat


def close(self):
    """Release the session's model, if any"""
    release_model(self.model)
    self.model = None
    self.predict_enabled = False
