"""Shared test fixtures for the Udger local parser tests."""

import pathlib

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]


@pytest.fixture
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture
def defaults_path() -> pathlib.Path:
    return REPO_ROOT / "config" / "parser_defaults.yaml"
