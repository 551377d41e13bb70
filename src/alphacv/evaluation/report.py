"""
Console and plot reports for cross-validation results.

Tables are rendered with Rich, the CV curve with matplotlib.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from rich.console import Console
from rich.table import Table

from alphacv.evaluation.consistency import ReferenceComparison
from alphacv.modeling.crossval import AlphaSelection, CVFitResult, CVPath
from alphacv.utils.logging import get_logger

log = get_logger(__name__)

# Rows shown around the selected alpha when a path is long
PATH_WINDOW = 10


def _visible_rows(n_rows: int, selected: int, max_rows: int | None) -> list[int]:
    """Indices to display: everything, or a window centred on the selection."""
    if max_rows is None or n_rows <= max_rows:
        return list(range(n_rows))
    half = max_rows // 2
    start = min(max(selected - half, 0), n_rows - max_rows)
    return list(range(start, start + max_rows))


def print_cv_path(
    path: CVPath,
    selection: AlphaSelection,
    console: Console,
    *,
    max_rows: int | None = PATH_WINDOW,
) -> None:
    """
    Print the alpha path as a table, marking the selected alpha.

    Args:
        path: CV path.
        selection: Selected alpha.
        console: Rich console.
        max_rows: Show at most this many rows around the selection
            (None shows all).
    """
    table = Table(
        title=f"{path.penalty.capitalize()} CV path "
        f"({path.n_folds} folds, {path.n_samples} samples)",
        show_header=True,
    )
    table.add_column("", justify="center", no_wrap=True)
    table.add_column("alpha", style="cyan", justify="right")
    table.add_column("mean MSE", style="green", justify="right")
    table.add_column("std MSE", style="dim", justify="right")

    means = path.mean_errors
    stds = path.std_errors
    rows = _visible_rows(len(path.alphas), selection.index, max_rows)

    for i in rows:
        marker = "[bold yellow]→[/bold yellow]" if i == selection.index else ""
        style = "bold" if i == selection.index else None
        table.add_row(
            marker,
            f"{path.alphas[i]:.6g}",
            f"{means[i]:.6g}",
            f"{stds[i]:.4g}",
            style=style,
        )

    console.print(table)
    if len(rows) < len(path.alphas):
        console.print(
            f"[dim]Showing {len(rows)} of {len(path.alphas)} alphas[/dim]"
        )
    console.print(
        f"Selected alpha = [bold]{selection.alpha:.6g}[/bold] "
        f"(rule: {selection.rule}, mean MSE {selection.mean_error:.6g})"
    )


def print_coefficients(
    coef: pd.Series, console: Console, intercept: float = 0.0
) -> None:
    """Print coefficients on the original feature scale, flagging exact zeros."""
    table = Table(title="Coefficients", show_header=True)
    table.add_column("Feature", style="cyan")
    table.add_column("Coefficient", justify="right")

    for name, value in coef.items():
        label = str(name)
        if value == 0:
            table.add_row(label, "[dim]0 (dropped)[/dim]")
        else:
            table.add_row(label, f"{value:.6g}")
    table.add_row("[italic]intercept[/italic]", f"{intercept:.6g}")

    console.print(table)

    n_zero = int((coef == 0).sum())
    if n_zero:
        console.print(
            f"[dim]{n_zero} of {len(coef)} coefficients are exactly zero[/dim]"
        )


def print_comparison(
    results: dict[str, CVFitResult],
    console: Console,
    references: dict[str, ReferenceComparison] | None = None,
) -> None:
    """
    Print a side-by-side summary of several penalties.

    Args:
        results: Penalty name -> fit result.
        console: Rich console.
        references: Optional penalty name -> comparison with scikit-learn.
            The comparison always uses the min-rule alpha, shown in its own
            column next to the alpha the configured rule selected.
    """
    table = Table(title="Penalty comparison", show_header=True)
    table.add_column("Penalty", style="cyan")
    table.add_column("alpha", justify="right")
    table.add_column("CV MSE", justify="right", style="green")
    table.add_column("R² (in-sample)", justify="right")
    table.add_column("Non-zero coef", justify="right")
    if references:
        table.add_column("min-rule alpha", justify="right")
        table.add_column("sklearn alpha", justify="right")
        table.add_column("Agree", justify="center")

    best_penalty = min(results, key=lambda k: results[k].selection.mean_error)

    for name, result in results.items():
        row = [
            f"[bold]{name}[/bold]" if name == best_penalty else name,
            f"{result.alpha:.6g}",
            f"{result.selection.mean_error:.6g}",
            f"{result.metrics.r2:.4f}",
            f"{result.n_nonzero}/{len(result.coef)}",
        ]
        if references:
            ref = references.get(name)
            if ref is None:
                row.extend(["-", "-", "-"])
            else:
                verdict = "[green]yes[/green]" if ref.agree else "[red]no[/red]"
                if ref.approximate:
                    verdict += " [dim](approx.)[/dim]"
                row.extend(
                    [f"{ref.alpha:.6g}", f"{ref.reference_alpha:.6g}", verdict]
                )
        table.add_row(*row)

    console.print(table)
    console.print(f"Lowest CV error: [bold]{best_penalty}[/bold]")


def plot_cv_path(
    path: CVPath,
    selection: AlphaSelection,
    output_path: Path,
) -> Path:
    """
    Plot mean held-out MSE ± one std against alpha and save it as PNG.

    Args:
        path: CV path.
        selection: Selected alpha (marked with a vertical line).
        output_path: Destination PNG path.

    Returns:
        The written path.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    means = path.mean_errors
    stds = path.std_errors

    fig, ax = plt.subplots(figsize=(8, 5))
    try:
        for j in range(path.n_folds):
            ax.plot(path.alphas, path.fold_errors[:, j], color="0.75", linewidth=0.8)
        ax.plot(path.alphas, means, color="C0", linewidth=2, label="mean MSE")
        ax.fill_between(
            path.alphas,
            np.maximum(means - stds, 0.0),
            means + stds,
            color="C0",
            alpha=0.2,
            label="± 1 std",
        )
        ax.axvline(
            selection.alpha,
            color="C3",
            linestyle="--",
            label=f"selected alpha = {selection.alpha:.4g}",
        )
        ax.set_xscale("log")
        ax.set_xlabel("alpha")
        ax.set_ylabel("held-out MSE")
        ax.set_title(f"{path.penalty.capitalize()}: {path.n_folds}-fold CV")
        ax.legend()
        fig.savefig(output_path, format="png", dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    log.info("Saved CV path plot", path=str(output_path))
    return output_path
