"""
forecastnext - one-step-ahead forecasting for small tabular time series
======================================================================
`forecastnext` loads a CSV or XLSX table, turns it into numeric features that
a gradient-boosted tree model can learn from, and forecasts the next step.

Main Features
-------------
- **Forgiving loaders** that infer which column holds the timestamps and
  which one to forecast.
- **Explicit time features** (a trend index plus daily- and weekly-like
  seasonal terms) so that tree models can pick up temporal structure.
- **Pluggable backends** behind a small train/predict interface, with
  lightgbm bundled.
"""
from forecastnext.exceptions import (
    ForecastNextError,
    ParseError,
    ModelInitError,
    TrainError,
    PredictError,
)

from forecastnext.io import (
    LoadedData,
    load_from_csv,
    load_from_xlsx,
    load_bytes,
    load_file,
    infer_datetime_column,
    infer_target_column,
)

from forecastnext.feature_engineering import FeatureBundle, build_features

from forecastnext.model import (
    ModelAdapter,
    LightGBMBooster,
    get_model_params,
    init_model_class,
    register_backend,
    release_model,
    train_model,
    predict_next,
)

from forecastnext.config import load_config

from forecastnext.main import ForecastSession, NO_COLUMN

__version__ = "1.0"
