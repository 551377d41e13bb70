"""
alphacv: cross-validated regularized linear regression.

Runs the K-fold alpha search behind Ridge and Lasso in the open:
every fold error is recorded, the minimizer is selected, and the
estimator is refit on all data with the winning alpha.
"""

from importlib.metadata import version

__version__ = version("alphacv")

__all__ = ["__version__"]
