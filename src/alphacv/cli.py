"""Command-line interface for alphacv."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from alphacv.config.settings import Penalty, SelectionRule

app = typer.Typer(
    name="alphacv",
    help="Cross-validated Ridge and Lasso regression with a transparent alpha path.",
    no_args_is_help=True,
)

console = Console()

ConfigOption = Annotated[
    Path,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration YAML file.",
        exists=True,
        dir_okay=False,
    ),
]
DataOption = Annotated[
    Path | None,
    typer.Option(
        "--data",
        "-d",
        help="Input CSV. Overrides data.path from the config.",
    ),
]


def _input_errors() -> tuple[type[Exception], ...]:
    from pandera.errors import SchemaError, SchemaErrors

    return (FileNotFoundError, KeyError, ValueError, SchemaError, SchemaErrors)


@app.callback()
def main(
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)."),
    ] = "WARNING",
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Emit logs as JSON lines."),
    ] = False,
) -> None:
    """Cross-validated Ridge and Lasso regression."""
    from alphacv.utils.logging import configure_logging

    configure_logging(log_level, json_output=json_logs)


@app.command()
def fit(
    config: ConfigOption,
    data: DataOption = None,
    penalty: Annotated[
        list[Penalty] | None,
        typer.Option(
            "--penalty",
            "-p",
            help="Penalty to fit (repeatable). Defaults to model.penalties.",
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Directory for saved models. Default: output/{project}/models.",
        ),
    ] = None,
    plot: Annotated[
        bool,
        typer.Option("--plot", help="Save a PNG of the CV curve per penalty."),
    ] = False,
    no_mlflow: Annotated[
        bool,
        typer.Option("--no-mlflow", help="Skip MLflow logging."),
    ] = False,
    all_rows: Annotated[
        bool,
        typer.Option("--all-rows", help="Print every alpha of the path."),
    ] = False,
) -> None:
    """
    Cross-validate the alpha grid, select the best alpha and refit.

    For every penalty: K-fold CV over all alphas, average held-out MSE,
    pick the minimizer, refit on all rows and save the model.
    """
    from alphacv.config.loader import load_config
    from alphacv.evaluation.report import (
        PATH_WINDOW,
        plot_cv_path,
        print_coefficients,
        print_cv_path,
    )
    from alphacv.modeling.crossval import run_cv
    from alphacv.modeling.data import load_dataset
    from alphacv.modeling.persistence import save_model

    try:
        run_config = load_config(config)
        X, y = load_dataset(run_config, data)
    except _input_errors() as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    penalties = [p.value for p in (penalty or run_config.model.penalties)]
    models_dir = output or run_config.models_dir

    console.print(
        f"[blue]{len(y)} samples, {X.shape[1]} features, "
        f"{run_config.cv.n_folds}-fold CV[/blue]"
    )

    for name in penalties:
        try:
            result = run_cv(name, X, y, run_config)
        except _input_errors() as e:
            console.print(f"[red]{name} failed: {e}[/red]")
            raise typer.Exit(code=1) from e

        console.print()
        print_cv_path(
            result.path,
            result.selection,
            console,
            max_rows=None if all_rows else PATH_WINDOW,
        )
        print_coefficients(result.coef, console, intercept=result.intercept)
        console.print(f"[dim]In-sample: {result.metrics}[/dim]")

        model_path, _ = save_model(result, models_dir / name)
        console.print(f"[green]Saved model: {model_path}[/green]")

        plot_path = None
        if plot:
            plot_path = plot_cv_path(
                result.path,
                result.selection,
                run_config.plots_dir / f"{name}_cv_path.png",
            )
            console.print(f"[green]Saved plot: {plot_path}[/green]")

        if run_config.mlflow.enabled and not no_mlflow:
            from alphacv.evaluation.tracking import CVExperiment

            try:
                run_id = CVExperiment(run_config).log_result(
                    result, plot_path=plot_path, log_model=True
                )
                console.print(f"[dim]MLflow run: {run_id}[/dim]")
            except Exception as e:
                console.print(f"[yellow]MLflow logging failed: {e}[/yellow]")


@app.command()
def compare(
    config: ConfigOption,
    data: DataOption = None,
    reference: Annotated[
        bool,
        typer.Option(
            "--reference/--no-reference",
            help="Also run scikit-learn's RidgeCV/LassoCV on the same folds.",
        ),
    ] = True,
) -> None:
    """Fit both Ridge and Lasso and compare their cross-validated errors."""
    from alphacv.config.loader import load_config
    from alphacv.evaluation.consistency import compare_with_reference
    from alphacv.evaluation.report import print_comparison
    from alphacv.modeling.crossval import make_folds, run_cv
    from alphacv.modeling.data import load_dataset

    try:
        run_config = load_config(config)
        X, y = load_dataset(run_config, data)
        results = {p.value: run_cv(p.value, X, y, run_config) for p in Penalty}

        references = None
        if reference:
            folds = make_folds(
                len(y),
                run_config.cv.n_folds,
                shuffle=run_config.cv.shuffle,
                random_state=run_config.cv.random_state,
            )
            references = {
                name: compare_with_reference(
                    name,
                    X,
                    y,
                    result.path.alphas,
                    folds,
                    standardize=run_config.model.standardize,
                    fit_intercept=run_config.model.fit_intercept,
                    max_iter=run_config.model.max_iter,
                    tol=run_config.model.tol,
                    path=result.path,
                )
                for name, result in results.items()
            }
    except _input_errors() as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    print_comparison(results, console, references)
    if references and run_config.selection.rule is not SelectionRule.MIN:
        console.print(
            f"[dim]alpha follows the {run_config.selection.rule.value} rule; "
            "scikit-learn is compared on the min-rule alpha[/dim]"
        )


@app.command()
def check(
    table: Annotated[
        Path,
        typer.Option(
            "--table",
            "-t",
            help="CSV with columns alpha,error.",
            exists=True,
            dir_okay=False,
        ),
    ],
    claimed: Annotated[
        float,
        typer.Option("--claimed", help="Alpha claimed to have the minimal error."),
    ],
) -> None:
    """Check that a published alpha/error table has its minimum where claimed."""
    from alphacv.evaluation.consistency import check_claimed_minimum, load_alpha_table

    try:
        report = check_claimed_minimum(load_alpha_table(table), claimed)
    except _input_errors() as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    if report.consistent:
        console.print(f"[green]Consistent: {report.message}[/green]")
    else:
        console.print(f"[red]Inconsistent: {report.message}[/red]")
        raise typer.Exit(code=1)


@app.command()
def predict(
    model: Annotated[
        Path,
        typer.Option(
            "--model",
            "-m",
            help="Saved model (.model.joblib, .model.json or their base path).",
        ),
    ],
    data: Annotated[
        Path,
        typer.Option("--data", "-d", help="CSV with the model's feature columns."),
    ],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="CSV to write with a prediction column."),
    ] = None,
) -> None:
    """Apply a saved model to new rows."""
    from alphacv.modeling.data import read_csv
    from alphacv.modeling.persistence import load_model

    try:
        pipeline, metadata = load_model(model)
        df = read_csv(data)
        features = list(metadata["coefficients"].keys())
        missing = [col for col in features if col not in df.columns]
        if missing:
            msg = f"Data is missing model features: {missing}"
            raise KeyError(msg)
        predictions = pipeline.predict(df[features].astype(float))
    except _input_errors() as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e

    out = df.assign(prediction=predictions)

    summary = Table(title="Predictions")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("Model", f"{metadata['penalty']} (alpha={metadata['alpha']:.6g})")
    summary.add_row("Rows", str(len(out)))
    summary.add_row("Mean prediction", f"{out['prediction'].mean():.6g}")
    console.print(summary)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        out.to_csv(output, index=False)
        console.print(f"[green]Saved predictions to: {output}[/green]")


@app.command()
def version() -> None:
    """Show version information."""
    from alphacv import __version__

    console.print(f"alphacv version {__version__}")


if __name__ == "__main__":
    app()
