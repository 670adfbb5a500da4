"""Tests for report rendering and export."""

from pathlib import Path

import pandas as pd

from tarball_mirror.models import DependencyEdge, NodeResult
from tarball_mirror.reporting import (
    NO_WARNINGS,
    build_report,
    children_by_parent,
    export_package_table,
    render_tree,
    write_report,
)


EDGES = [
    DependencyEdge("A", "B"),
    DependencyEdge("A", "C"),
    DependencyEdge("B", "D"),
]


def test_render_tree_is_preorder_and_indented():
    assert render_tree("A", EDGES) == "- A\n  - B\n    - D\n  - C\n"


def test_render_tree_uses_first_edge_per_child():
    edges = EDGES + [DependencyEdge("C", "D")]

    assert children_by_parent(edges) == {"A": ["B", "C"], "B": ["D"]}
    assert render_tree("A", edges) == "- A\n  - B\n    - D\n  - C\n"


def test_render_tree_for_leaf_root():
    assert render_tree("solo@1.0.0", []) == "- solo@1.0.0\n"


def test_build_report_sections():
    report = build_report(
        packages=["A", "B", "C", "D"],
        edges=EDGES,
        roots=["A"],
        warnings=["WARNING: D uses a non-commercial-friendly license: GPL-3.0"],
    )

    packages_part, rest = report.split("=== Dependency Tree ===")
    tree_part, warnings_part = rest.split("=== License Warnings ===")
    assert "=== Downloaded Packages ===\nA\nB\nC\nD\n" in packages_part
    assert "- A\n  - B\n    - D\n  - C\n" in tree_part
    assert "GPL-3.0" in warnings_part
    assert NO_WARNINGS not in warnings_part


def test_build_report_without_warnings_uses_sentinel():
    report = build_report(["lodash@4.17.21"], [], ["lodash@4.17.21"], [])

    assert report.rstrip().endswith(NO_WARNINGS)


def test_write_report_overwrites(tmp_path: Path):
    report_file = tmp_path / "logs" / "download.log"
    write_report("first", report_file)
    write_report("second", report_file)

    assert report_file.read_text(encoding="utf-8") == "second"


def test_export_package_table(tmp_path: Path):
    results = [
        NodeResult("a@1.0.0", "a", "1.0.0", None, "MIT", "resolved"),
        NodeResult("b@2.0.0", "b", "2.0.0", "a@1.0.0", None, "metadata_failed", "404"),
    ]

    summary_file = export_package_table(results, tmp_path / "summary.csv")
    df = pd.read_csv(summary_file)

    assert list(df.columns) == ["key", "name", "version", "parent", "license", "status", "error"]
    assert df["key"].tolist() == ["a@1.0.0", "b@2.0.0"]
    assert df.loc[1, "status"] == "metadata_failed"


def test_export_empty_package_table(tmp_path: Path):
    summary_file = export_package_table([], tmp_path / "summary.csv")

    assert summary_file.read_text(encoding="utf-8").strip() == "key,name,version,parent,license,status,error"
