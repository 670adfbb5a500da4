"""
Reporting and export utilities.
"""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set

import pandas as pd

from .models import STATUS_RESOLVED, DependencyEdge, NodeResult


logger = logging.getLogger(__name__)

NO_WARNINGS = "No license warnings."

SUMMARY_COLUMNS = ["key", "name", "version", "parent", "license", "status", "error"]


def children_by_parent(edges: Iterable[DependencyEdge]) -> Dict[str, List[str]]:
    """Group edges by parent, keeping only the first edge seen for each child."""
    children: Dict[str, List[str]] = {}
    seen: Set[str] = set()
    for edge in edges:
        if edge.child in seen:
            continue
        seen.add(edge.child)
        children.setdefault(edge.parent, []).append(edge.child)
    return children


def render_tree(
    root: str,
    edges: Iterable[DependencyEdge],
    children: Optional[Dict[str, List[str]]] = None,
) -> str:
    """Render the subgraph under ``root`` as an indented pre-order list."""
    if children is None:
        children = children_by_parent(edges)

    lines: List[str] = []
    visited: Set[str] = set()

    def visit(key: str, depth: int) -> None:
        lines.append("  " * depth + f"- {key}")
        if key in visited:
            return
        visited.add(key)
        for child in children.get(key, []):
            visit(child, depth + 1)

    visit(root, 0)
    return "\n".join(lines) + "\n"


def build_report(
    packages: List[str],
    edges: List[DependencyEdge],
    roots: List[str],
    warnings: List[str],
) -> str:
    children = children_by_parent(edges)
    trees = "\n".join(render_tree(root, edges, children) for root in roots)
    warning_text = "\n".join(warnings) if warnings else NO_WARNINGS
    package_text = "\n".join(packages)

    return (
        "\n"
        "=== Downloaded Packages ===\n"
        f"{package_text}\n"
        "\n"
        "=== Dependency Tree ===\n"
        f"{trees}\n"
        "\n"
        "=== License Warnings ===\n"
        f"{warning_text}\n"
    )


def write_report(report: str, report_file: Path) -> Path:
    report_file = Path(report_file)
    report_file.parent.mkdir(parents=True, exist_ok=True)
    with open(report_file, "w", encoding="utf-8") as f:
        f.write(report)
    return report_file


def export_package_table(results: Iterable[NodeResult], summary_file: Path) -> Path:
    """Write one CSV row per resolved (or failed) package."""
    summary_file = Path(summary_file)
    summary_file.parent.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame([asdict(result) for result in results], columns=SUMMARY_COLUMNS)
    df.to_csv(summary_file, index=False, columns=SUMMARY_COLUMNS)
    return summary_file


def print_summary(
    packages: List[str],
    results: List[NodeResult],
    warnings: List[str],
    report_file: Path,
) -> None:
    failed = [r for r in results if r.status != STATUS_RESOLVED]
    logger.info("=" * 60)
    logger.info("DOWNLOAD RESULTS")
    logger.info("=" * 60)
    logger.info("Packages: %s", len(packages))
    logger.info("Failed: %s", len(failed))
    logger.info("License warnings: %s", len(warnings))
    logger.info("Log file saved to: %s", report_file)
    logger.info("=" * 60)

    for result in failed:
        logger.error("%s: %s (%s)", result.key, result.status, result.error)
    for warning in warnings:
        logger.warning(warning)
