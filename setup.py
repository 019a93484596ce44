from setuptools import setup

setup(
    name="forecastnext",
    maintainer="Nick Lind",
    version="1.0",
    maintainer_email="nick@quantilegroup.com",
    description="Load a CSV/XLSX time series, train a gradient-boosted tree model, and forecast the next step",
    platforms="any",
    python_requires=">=3.9",
    packages=["forecastnext"],
    install_requires=[
        "numpy",
        "pandas",
        "lightgbm[scikit-learn]",
        "openpyxl",
        "pyyaml",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["forecastnext=forecastnext.cli:main"]},
)
