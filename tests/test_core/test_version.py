"""The package version matches pyproject.toml."""

import tomllib
from pathlib import Path

import discipline_tracker


def test_version_matches_pyproject():
    pyproject = Path(__file__).resolve().parents[2] / "pyproject.toml"
    with open(pyproject, "rb") as f:
        expected = tomllib.load(f)["project"]["version"]
    assert discipline_tracker.__version__ == expected


def test_missing_pyproject_reads_as_none(tmp_path):
    from discipline_tracker.version import read_pyproject_version

    assert read_pyproject_version(tmp_path / "pyproject.toml") is None


def test_installed_metadata_used_without_checkout(monkeypatch, tmp_path):
    from discipline_tracker import version

    monkeypatch.setattr(version, "PYPROJECT", tmp_path / "pyproject.toml")
    monkeypatch.setattr(version.metadata, "version", lambda name: f"{name}-9.9.9")
    assert version.get_version() == "discipline-tracker-9.9.9"
