"""End-to-end tests for the command-line entry point."""

from pathlib import Path

import pandas as pd
import pytest

from tarball_mirror import cli


REGISTRY = "https://registry.example.com"


def _args(tmp_path: Path, *packages: str):
    return [
        *packages,
        "--registry", REGISTRY,
        "--output-dir", str(tmp_path / "npm-packages"),
        "--report-file", str(tmp_path / "download.log"),
        "--summary-file", str(tmp_path / "summary.csv"),
        "--no-progress",
    ]


@pytest.fixture
def registry_session(monkeypatch, make_session, make_response):
    routes = {
        f"{REGISTRY}/lodash/4.17.21": make_response(json_data={
            "version": "4.17.21",
            "license": "MIT",
            "dependencies": {},
            "dist": {"tarball": "https://cdn.example.com/lodash-4.17.21.tgz"},
        }),
        "https://cdn.example.com/lodash-4.17.21.tgz": make_response(body=b"lodash-tarball"),
    }
    session = make_session(routes)
    monkeypatch.setattr(cli.requests, "Session", lambda: session)
    return session


def test_main_downloads_and_writes_report(tmp_path: Path, registry_session):
    exit_code = cli.main(_args(tmp_path, "lodash@4.17.21"))

    assert exit_code == 0
    archive = tmp_path / "npm-packages" / "lodash-4.17.21.tgz"
    assert archive.read_bytes() == b"lodash-tarball"

    report = (tmp_path / "download.log").read_text(encoding="utf-8")
    assert "=== Downloaded Packages ===\nlodash@4.17.21\n" in report
    assert "- lodash@4.17.21" in report
    assert "No license warnings." in report

    summary = pd.read_csv(tmp_path / "summary.csv")
    assert summary["key"].tolist() == ["lodash@4.17.21"]
    assert summary["status"].tolist() == ["resolved"]


def test_second_run_skips_existing_archive(tmp_path: Path, registry_session):
    cli.main(_args(tmp_path, "lodash@4.17.21"))
    registry_session.calls.clear()

    assert cli.main(_args(tmp_path, "lodash@4.17.21")) == 0
    assert registry_session.calls == [f"{REGISTRY}/lodash/4.17.21"]


def test_clear_removes_previous_downloads(tmp_path: Path, registry_session):
    download_dir = tmp_path / "npm-packages"
    download_dir.mkdir()
    (download_dir / "stale-0.0.1.tgz").write_bytes(b"old")

    assert cli.main(_args(tmp_path, "lodash@4.17.21") + ["--clear"]) == 0
    assert sorted(p.name for p in download_dir.iterdir()) == ["lodash-4.17.21.tgz"]


def test_run_completes_when_every_package_fails(tmp_path: Path, registry_session):
    exit_code = cli.main(_args(tmp_path, "missing@1.0.0"))

    assert exit_code == 0
    report = (tmp_path / "download.log").read_text(encoding="utf-8")
    assert "- missing@1.0.0" in report
    summary = pd.read_csv(tmp_path / "summary.csv")
    assert summary["status"].tolist() == ["metadata_failed"]


def test_malformed_root_specifier_exits_before_work(tmp_path: Path, registry_session):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(_args(tmp_path, "lodash@4.17.21", "@scope"))

    assert excinfo.value.code == 2
    assert registry_session.calls == []
    assert not (tmp_path / "download.log").exists()


def test_unusable_download_directory_exits_with_error(tmp_path: Path, registry_session):
    (tmp_path / "npm-packages").write_text("not a directory")

    assert cli.main(_args(tmp_path, "lodash@4.17.21")) == 1
    assert registry_session.calls == []


def test_invalid_concurrency_is_rejected(tmp_path: Path, registry_session):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(_args(tmp_path, "lodash") + ["--concurrency", "0"])

    assert excinfo.value.code == 2
