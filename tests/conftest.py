"""Shared fixtures for the USF test suite."""

import os

import pytest
import structlog

from usf.config import reset_config


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Run each test without USF_* variables, .env files or leftover logging config."""
    for var in list(os.environ):
        if var.upper().startswith("USF_"):
            monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)
    reset_config()
    structlog.reset_defaults()

    yield

    reset_config()
    structlog.reset_defaults()


@pytest.fixture
def math_subject():
    return {"simplified_name": "Math", "teacher": "T", "room": "R1"}


@pytest.fixture
def valid_document(math_subject):
    """A small, complete document that passes strict validation."""
    return {
        "version": 1,
        "subjects": {
            "Math": math_subject,
            "Physics": {"simplified_name": "Phys", "teacher": "Curie", "room": "Lab"},
        },
        "periods": [
            ["08:00:00", "08:45:00"],
            ["08:55:00", "09:40:00"],
        ],
        "timetable": [
            [1, "all", "Math", 1],
            [1, "odd", "Physics", 2],
            [3, "even", "Math", 2],
        ],
    }
