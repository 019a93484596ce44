import asyncio
import io

import numpy as np
import pandas as pd

import forecastnext as fn


def get_test_example():
    """
    Return made-up hourly rows that can be used for testing purposes
    """

    return [
        {"timestamp": "2025-01-01 00:00", "temperature": 3.5, "humidity": 81, "load": 410.0},
        {"timestamp": "2025-01-01 01:00", "temperature": 3.1, "humidity": 83, "load": 395.5},
        {"timestamp": "2025-01-01 02:00", "temperature": 2.8, "humidity": None, "load": 380.25},
        {"timestamp": "2025-01-01 03:00", "temperature": 2.4, "humidity": 86, "load": 372.0},
        {"timestamp": "2025-01-01 04:00", "temperature": "n/a", "humidity": 87, "load": 377.75},
        {"timestamp": "2025-01-01 05:00", "temperature": 2.2, "humidity": 88, "load": 401.0},
    ]


def get_test_csv():
    """Return get_test_example() as CSV text, with the missing humidity left blank"""
    return (
        "timestamp,temperature,humidity,load\n"
        "2025-01-01 00:00,3.5,81,410.0\n"
        "2025-01-01 01:00,3.1,83,395.5\n"
        "2025-01-01 02:00,2.8,,380.25\n"
        "2025-01-01 03:00,2.4,86,372.0\n"
        "2025-01-01 04:00,n/a,87,377.75\n"
        "2025-01-01 05:00,2.2,88,401.0\n"
    )


def get_test_xlsx(df=None):
    """Return the bytes of a one-sheet workbook built from df"""
    if df is None:
        df = pd.DataFrame(get_test_example())

    buffer = io.BytesIO()
    df.to_excel(buffer, index=False, engine="openpyxl")
    return buffer.getvalue()


def get_test_loaded_data():
    return fn.load_from_csv(get_test_csv())


class FakeBooster:
    """
    ModelAdapter stand-in that predicts the mean of its training targets.
    Records every call so tests can check ordering.
    """

    def __init__(self, config):
        self.config = config
        self.trained_on = None
        self.freed = False
        self.calls = []

    def train(self, X, y):
        self.calls.append("train")
        self.trained_on = (np.asarray(X), np.asarray(y))

    def predict(self, rows):
        self.calls.append("predict")
        mean = float(np.nanmean(self.trained_on[1]))
        return [mean for _ in rows]

    def free(self):
        self.calls.append("free")
        self.freed = True


class SlowAsyncBooster(FakeBooster):
    """FakeBooster whose train step is a coroutine that yields to the event loop"""

    async def train(self, X, y):
        self.calls.append("train started")
        await asyncio.sleep(0)
        super().train(X, y)


class BrokenBooster(FakeBooster):
    """FakeBooster that always fails to train and to free"""

    def train(self, X, y):
        raise RuntimeError("boom")

    def free(self):
        raise RuntimeError("free failed")


def get_test_session(model_class=FakeBooster, load=True):
    """
    Return a ForecastSession using model_class, optionally loaded with
    get_test_csv()
    """
    session = fn.ForecastSession(model_class=model_class)

    if load:
        session.read_csv(get_test_csv())

    return session


def _get_difference_threshold():
    """
    Return desired threshold, measured as np.sum(np.abs((returned - answered)))
    in most cases.
    """
    return 1e-9
