"""Number formatting and templated summary sentences for the reports."""

from __future__ import annotations

from typing import Any

# Significance level used in summary sentences
ALPHA = 0.05


def format_p(p: float | None) -> str:
    """Format a p-value for display ("< 0.001", "0.042", "n/a")."""
    if p is None:
        return "n/a"
    if p < 0.001:
        return "< 0.001"
    return f"{p:.3f}"


def format_number(value: float | None, digits: int = 2) -> str:
    """Format a float with fixed decimals, "n/a" for missing values."""
    if value is None:
        return "n/a"
    return f"{value:.{digits}f}"


def is_significant(p: float | None, alpha: float = ALPHA) -> bool:
    return p is not None and p < alpha


def cluster_sentence(gap: dict[str, Any]) -> str:
    """Describe the gap-statistic choice of k."""
    k = gap.get("selected_k", 1)
    k_max = len(gap.get("table", []))
    if k <= 1:
        return (
            f"The gap statistic ({gap.get('rule')}) found no cluster structure in the "
            f"zooplankton community among k = 1..{k_max}."
        )
    return (
        f"The gap statistic ({gap.get('rule')}, {gap.get('n_bootstraps')} reference sets) "
        f"selected {k} zooplankton clusters among k = 1..{k_max}."
    )


def permanova_sentence(permanova: dict[str, Any]) -> str:
    """Summarize the PERMANOVA of predator composition among clusters."""
    p = permanova.get("p_value")
    if permanova.get("pseudo_f") is None:
        return "Predator composition could not be compared among zooplankton clusters."
    verdict = "differed" if is_significant(p) else "did not differ significantly"
    return (
        f"Predator community composition {verdict} among zooplankton clusters "
        f"(pseudo-F = {format_number(permanova.get('pseudo_f'))}, "
        f"R² = {format_number(permanova.get('r2'))}, p = {format_p(p)})."
    )


def association_sentence(test: dict[str, Any]) -> str:
    """Summarize a chi-square test of cluster membership against a factor."""
    factor = test.get("column_variable") or "factor"
    if test.get("statistic") is None:
        return f"Cluster membership could not be tested against {factor}."
    p = test.get("permutation_p_value")
    if p is None:
        p = test.get("p_value")
    verdict = "was associated" if is_significant(p) else "was not significantly associated"
    return (
        f"Cluster membership {verdict} with {factor} "
        f"(χ² = {format_number(test.get('statistic'))}, "
        f"df = {test.get('dof')}, p = {format_p(p)})."
    )


def stress_sentence(ordination: dict[str, Any]) -> str:
    stress = ordination.get("stress")
    if stress is None:
        return "NMDS stress is unavailable."
    if stress < 0.1:
        quality = "a good"
    elif stress <= 0.2:
        quality = "a fair"
    else:
        quality = "a poor"
    return (
        f"The {len(ordination.get('axes', []))}-dimensional NMDS of "
        f"{ordination.get('n_stations')} stations has stress {stress:.3f}, {quality} fit."
    )
