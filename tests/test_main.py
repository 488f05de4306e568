"""
Tests for the server entrypoint (main.py): settings drive logging and uvicorn.
"""

from __future__ import annotations

from unittest.mock import patch

from blinkguard.config.settings import Settings


def test_main_applies_log_settings_and_runs_uvicorn(tmp_path):
    import main

    settings = Settings(
        registry_path=tmp_path / "registry.json",
        api_host="127.0.0.1",
        api_port=3100,
        log_level="DEBUG",
        log_format="console",
    )
    with patch("blinkguard.config.get_settings", return_value=settings), patch(
        "main.configure_structlog"
    ) as configure, patch("uvicorn.run") as run:
        main.main()

    configure.assert_called_once_with("DEBUG", "console")
    _, kwargs = run.call_args
    assert kwargs == {"host": "127.0.0.1", "port": 3100, "log_level": "debug"}
