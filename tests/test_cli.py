"""Tests for the command-line interface."""

from pathlib import Path

import pandas as pd
import pytest
from typer.testing import CliRunner

from alphacv import __version__
from alphacv.cli import app

runner = CliRunner()


@pytest.fixture
def models_dir(tmp_path: Path) -> Path:
    """Where the fit command saves models for the test config."""
    return tmp_path / "output" / "synthetic" / "models"


class TestFit:
    """Tests for the fit command."""

    def test_fit_both_penalties(self, config_file: Path, models_dir: Path) -> None:
        """Test a default fit saves one model per penalty."""
        result = runner.invoke(app, ["fit", "-c", str(config_file), "--no-mlflow"])

        assert result.exit_code == 0, result.output
        assert "Selected alpha" in result.output
        assert (models_dir / "ridge.model.joblib").exists()
        assert (models_dir / "lasso.model.json").exists()

    def test_fit_single_penalty_with_plot(
        self, config_file: Path, models_dir: Path, tmp_path: Path
    ) -> None:
        """Test --penalty limits the fit and --plot writes the curve."""
        result = runner.invoke(
            app, ["fit", "-c", str(config_file), "-p", "lasso", "--plot"]
        )

        assert result.exit_code == 0, result.output
        assert (models_dir / "lasso.model.joblib").exists()
        assert not (models_dir / "ridge.model.joblib").exists()
        plots_dir = tmp_path / "output" / "synthetic" / "plots"
        assert (plots_dir / "lasso_cv_path.png").exists()

    def test_fit_output_override(self, config_file: Path, tmp_path: Path) -> None:
        """Test --output redirects saved models."""
        out = tmp_path / "elsewhere"
        result = runner.invoke(
            app, ["fit", "-c", str(config_file), "-p", "ridge", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert (out / "ridge.model.joblib").exists()

    def test_missing_data_file(self, tmp_path: Path) -> None:
        """Test a config pointing at a missing CSV exits with code 1."""
        config = tmp_path / "bad.yaml"
        config.write_text("data:\n  path: missing.csv\n  target: y\n")

        result = runner.invoke(app, ["fit", "-c", str(config)])

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_malformed_config(self, tmp_path: Path) -> None:
        """Test a config that is not valid YAML exits with code 1."""
        config = tmp_path / "broken.yaml"
        config.write_text("data: [unclosed\n")

        result = runner.invoke(app, ["fit", "-c", str(config)])

        assert result.exit_code == 1
        assert "Error" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)

    def test_unknown_target(self, config_file: Path, tmp_path: Path) -> None:
        """Test a data override without the target column exits with code 1."""
        other = tmp_path / "other.csv"
        pd.DataFrame({"a": [1.0, 2.0], "b": [3.0, 4.0]}).to_csv(other, index=False)

        result = runner.invoke(app, ["fit", "-c", str(config_file), "-d", str(other)])

        assert result.exit_code == 1


class TestCompare:
    """Tests for the compare command."""

    def test_compare_without_reference(self, config_file: Path) -> None:
        """Test both penalties are summarized."""
        result = runner.invoke(
            app, ["compare", "-c", str(config_file), "--no-reference"]
        )

        assert result.exit_code == 0, result.output
        assert "Penalty comparison" in result.output
        assert "Lowest CV error" in result.output

    def test_compare_with_reference(self, config_file: Path) -> None:
        """Test the reference comparison runs on the same folds."""
        result = runner.invoke(app, ["compare", "-c", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Lowest CV error" in result.output

    def test_compare_one_se_notes_min_rule(
        self, data_csv: Path, tmp_path: Path
    ) -> None:
        """Test one-SE runs say the reference is compared on the min-rule alpha."""
        config = tmp_path / "one_se.yaml"
        config.write_text(
            f"data:\n  path: {data_csv.name}\n  target: y\n"
            "alphas:\n  n_alphas: 10\n"
            "model:\n  standardize: false\n"
            "selection:\n  rule: one_se\n"
        )

        result = runner.invoke(app, ["compare", "-c", str(config)])

        assert result.exit_code == 0, result.output
        assert "one_se rule" in result.output


class TestCheck:
    """Tests for the check command."""

    @pytest.fixture
    def table_csv(self, tmp_path: Path) -> Path:
        """A published alpha/error table with its minimum at alpha=1."""
        path = tmp_path / "table.csv"
        path.write_text("alpha,error\n0.01,5.8\n0.1,4.9\n1,4.1\n10,4.6\n")
        return path

    def test_consistent(self, table_csv: Path) -> None:
        """Test a correct claim exits with code 0."""
        result = runner.invoke(app, ["check", "-t", str(table_csv), "--claimed", "1"])

        assert result.exit_code == 0
        assert "Consistent" in result.output

    def test_inconsistent(self, table_csv: Path) -> None:
        """Test a wrong claim exits with code 1."""
        result = runner.invoke(app, ["check", "-t", str(table_csv), "--claimed", "10"])

        assert result.exit_code == 1
        assert "Inconsistent" in result.output


class TestPredict:
    """Tests for the predict command."""

    def test_predict_writes_csv(
        self, config_file: Path, data_csv: Path, models_dir: Path, tmp_path: Path
    ) -> None:
        """Test predictions from a saved model are written next to the input."""
        fit = runner.invoke(app, ["fit", "-c", str(config_file), "-p", "ridge"])
        assert fit.exit_code == 0, fit.output
        out = tmp_path / "pred" / "predictions.csv"

        result = runner.invoke(
            app,
            [
                "predict",
                "-m",
                str(models_dir / "ridge"),
                "-d",
                str(data_csv),
                "-o",
                str(out),
            ],
        )

        assert result.exit_code == 0, result.output
        predictions = pd.read_csv(out)
        assert "prediction" in predictions.columns
        assert len(predictions) == 120

    def test_missing_model(self, data_csv: Path, tmp_path: Path) -> None:
        """Test a missing model exits with code 1."""
        result = runner.invoke(
            app, ["predict", "-m", str(tmp_path / "nope"), "-d", str(data_csv)]
        )
        assert result.exit_code == 1


def test_version() -> None:
    """Test the version command."""
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output
