"""Tests for the scikit-learn compatible CV estimators."""

import numpy as np
import pandas as pd
import pytest
from sklearn.base import clone
from sklearn.exceptions import NotFittedError
from sklearn.linear_model import RidgeCV
from sklearn.model_selection import KFold

from alphacv.modeling.estimators import (
    LassoCVRegressor,
    RegularizedCVRegressor,
    RidgeCVRegressor,
)

Data = tuple[pd.DataFrame, pd.Series]


class TestRidgeCVRegressor:
    """Tests for RidgeCVRegressor."""

    def test_fit_attributes(self, regression_data: Data) -> None:
        """Test fitted attributes mirror scikit-learn's CV estimators."""
        X, y = regression_data
        model = RidgeCVRegressor(alphas=[0.1, 1.0, 10.0, 100.0], cv=4, random_state=0)

        assert model.fit(X, y) is model

        assert model.penalty == "ridge"
        np.testing.assert_array_equal(model.alphas_, [100.0, 10.0, 1.0, 0.1])
        assert model.mse_path_.shape == (4, 4)
        assert model.alpha_ in {100.0, 10.0, 1.0, 0.1}
        assert model.alpha_ == model.alphas_[np.argmin(model.mse_path_.mean(axis=1))]
        assert model.coef_.shape == (5,)
        assert model.n_features_in_ == 5
        assert list(model.feature_names_in_) == ["x1", "x2", "x3", "x4", "x5"]

    def test_matches_sklearn_ridgecv(self, regression_data: Data) -> None:
        """Test the selected alpha agrees with RidgeCV on identical folds."""
        X, y = regression_data
        alphas = np.geomspace(1000.0, 0.01, 12)
        kfold = KFold(n_splits=5, shuffle=True, random_state=11)

        ours = RidgeCVRegressor(alphas=alphas, cv=kfold, standardize=False).fit(X, y)
        reference = RidgeCV(
            alphas=alphas, cv=kfold, scoring="neg_mean_squared_error"
        ).fit(X, y)

        assert ours.alpha_ == pytest.approx(reference.alpha_)
        np.testing.assert_allclose(ours.coef_, reference.coef_, rtol=1e-6)
        assert ours.intercept_ == pytest.approx(reference.intercept_)

    def test_predict_and_score(self, regression_data: Data) -> None:
        """Test predictions and R² after fitting."""
        X, y = regression_data
        model = RidgeCVRegressor(n_alphas=10, random_state=0).fit(X, y)

        predictions = model.predict(X)

        assert predictions.shape == (120,)
        np.testing.assert_allclose(
            predictions, X.to_numpy() @ model.coef_ + model.intercept_, rtol=1e-8
        )
        assert model.score(X, y) > 0.9

    def test_predict_before_fit(self, regression_data: Data) -> None:
        """Test predicting with an unfitted estimator fails."""
        X, _ = regression_data
        with pytest.raises(NotFittedError):
            RidgeCVRegressor().predict(X)

    def test_predict_wrong_width(self, regression_data: Data) -> None:
        """Test predicting with the wrong number of features fails."""
        X, y = regression_data
        model = RidgeCVRegressor(alphas=[1.0], cv=3).fit(X, y)
        with pytest.raises(ValueError, match="X has 2 features"):
            model.predict(X.iloc[:, :2])


class TestLassoCVRegressor:
    """Tests for LassoCVRegressor."""

    def test_sparsity(self, regression_data: Data) -> None:
        """Test a strong penalty zeroes out the irrelevant features."""
        X, y = regression_data
        model = LassoCVRegressor(alphas=[0.5], cv=3).fit(X, y)

        assert model.alpha_ == 0.5
        assert model.coef_[2] == 0.0
        assert model.coef_[3] == 0.0
        assert model.coef_[0] != 0.0

    def test_derived_grid(self, regression_data: Data) -> None:
        """Test the default grid is built from the data."""
        X, y = regression_data
        model = LassoCVRegressor(n_alphas=12, eps=1e-2, random_state=0).fit(X, y)

        assert len(model.alphas_) == 12
        assert model.alphas_[-1] / model.alphas_[0] == pytest.approx(1e-2)
        assert model.mse_path_.shape == (12, 5)

    def test_numpy_input_has_no_feature_names(self, regression_data: Data) -> None:
        """Test arrays do not set feature_names_in_."""
        X, y = regression_data
        model = LassoCVRegressor(alphas=[0.1], cv=3).fit(X.to_numpy(), y.to_numpy())
        assert not hasattr(model, "feature_names_in_")


class TestRegularizedCVRegressor:
    """Tests for the generic estimator."""

    def test_get_params_and_clone(self) -> None:
        """Test scikit-learn parameter handling."""
        model = LassoCVRegressor(alphas=[1.0, 0.1], cv=3, selection="one_se")

        params = model.get_params()
        cloned = clone(model)

        assert "penalty" not in params
        assert params["selection"] == "one_se"
        assert isinstance(cloned, LassoCVRegressor)
        assert cloned.penalty == "lasso"
        assert cloned.alphas == [1.0, 0.1]

    def test_generic_penalty(self, regression_data: Data) -> None:
        """Test the base class with an explicit penalty."""
        X, y = regression_data
        model = RegularizedCVRegressor(penalty="lasso", alphas=[0.5, 0.05], cv=3)
        model.fit(X, y)
        assert model.alpha_ in {0.5, 0.05}
        assert model.selection_.rule == "min"
        assert model.cv_path_.penalty == "lasso"

    def test_unknown_penalty(self, regression_data: Data) -> None:
        """Test an unknown penalty fails at fit time."""
        X, y = regression_data
        with pytest.raises(ValueError, match="Unknown penalty"):
            RegularizedCVRegressor(penalty="elasticnet").fit(X, y)

    def test_invalid_alphas(self, regression_data: Data) -> None:
        """Test non-positive alphas fail at fit time."""
        X, y = regression_data
        with pytest.raises(ValueError, match="must be finite and > 0"):
            RegularizedCVRegressor(alphas=[1.0, -1.0]).fit(X, y)
