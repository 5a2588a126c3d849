"""
Tests for the ``check-env`` command line entry point.
"""

import logging

import pytest

from voice_controller.__main__ import main

from conftest import ASSISTANT_ID, PUBLIC_KEY


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_check_env_passes_with_credentials(monkeypatch):
    monkeypatch.setenv("VAPI_PUBLIC_KEY", PUBLIC_KEY)
    monkeypatch.setenv("VAPI_ASSISTANT_ID", ASSISTANT_ID)
    assert main(["check-env", "--dev"]) == 0


def test_check_env_fails_without_credentials():
    assert main(["check-env"]) == 1


def test_server_flag_requires_private_key(monkeypatch):
    monkeypatch.setenv("NEXT_PUBLIC_VAPI_KEY", PUBLIC_KEY)
    monkeypatch.setenv("NEXT_PUBLIC_VAPI_ASSISTANT_ID", ASSISTANT_ID)
    assert main(["check-env", "--server"]) == 1

    monkeypatch.setenv("VAPI_PRIVATE_KEY", "3c1d2e4f-5a6b-4c7d-8e9f-0a1b2c3d4e5f")
    assert main(["check-env", "--server"]) == 0


def test_check_env_with_config_file(monkeypatch):
    monkeypatch.setenv("VAPI_PUBLIC_KEY", PUBLIC_KEY)
    monkeypatch.setenv("VAPI_ASSISTANT_ID", ASSISTANT_ID)
    assert main(["check-env", "--config", "config/voice-controller.example.yaml"]) == 0


def test_subcommand_required():
    with pytest.raises(SystemExit):
        main([])
