"""
Base class for ForecastSession
"""
import logging

from forecastnext import utilities

logger = logging.getLogger(__name__)

NO_COLUMN = object()


class ForecastSession:
    """
    Holds one loaded table, the chosen columns, and the model trained on them.

    Loading new data replaces the table wholesale and discards the model.
    Predictions are only allowed once a train call has finished successfully;
    check ``predict_enabled`` before offering them.

    Parameters
    ----------
    params : dict, default None
        Hyperparameters layered over get_model_params("default").
    backend : str, default "lightgbm"
        The model backend resolved by init_model_class on the first train call.
    csv_engine : str, default "pandas"
        The CSV parser used by read_file and read_csv.
    model_class : class, default None
        A ModelAdapter class to use instead of resolving backend.
    """

    def __init__(
        self,
        params: dict = None,
        backend: str = "lightgbm",
        csv_engine: str = "pandas",
        model_class=None,
    ):
        self.params = dict(params or {})
        self.backend = backend
        self.csv_engine = csv_engine
        self.model_class = model_class
        self._resolved_model_class = None

        self.data = None
        self.datetime_column = None
        self.target = None
        self.model = None
        self.predict_enabled = False
        self.last_prediction = None
        self.status = "idle"

    @classmethod
    def from_config(cls, config: dict):
        """Create a session from a dict shaped like forecastnext.config.DEFAULT_CONFIG"""
        return cls(
            params=config.get("model"),
            backend=config.get("backend", "lightgbm"),
            csv_engine=config.get("csv_engine", "pandas"),
        )

    def _set_status(self, status: str):
        self.status = status
        logger.debug(f"Status: {status}")

    def select_columns(self, datetime_column=None, target=None):
        """
        Choose the datetime and target columns. Changing either one discards
        any trained model.

        Parameters
        ----------
        datetime_column : str, default None
            New datetime column. Leaves the current choice alone when None.
            Pass NO_COLUMN to train without a datetime column, so that every
            non-target column becomes a feature.
        target : str, default None
            New target column. Leaves the current choice alone when None.
        """
        assert self.data is not None, "Load data before selecting columns"

        requested = [
            col for col in [datetime_column, target] if col not in (None, NO_COLUMN)
        ]
        utilities._assert_features_in_list(
            requested, self.data.headers, "Didn't recognize the following columns"
        )

        if datetime_column is NO_COLUMN:
            datetime_column_choice = None
        elif datetime_column is None:
            datetime_column_choice = self.datetime_column
        else:
            datetime_column_choice = datetime_column

        changed = False
        if datetime_column_choice != self.datetime_column:
            self.datetime_column = datetime_column_choice
            changed = True
        if target is not None and target != self.target:
            self.target = target
            changed = True

        if changed:
            self.close()

    @property
    def headers(self):
        return self.data.headers if self.data is not None else ()

    from forecastnext.io import read_file, read_csv, read_xlsx

    from forecastnext.model import train, predict, close

    def __repr__(self):
        return (
            f"ForecastSession(status={self.status!r}, rows={len(self.data) if self.data else 0}, "
            f"datetime_column={self.datetime_column!r}, target={self.target!r}, "
            f"predict_enabled={self.predict_enabled})"
        )
