"""Tests for main.py -- the scaffold-api command line."""

from __future__ import annotations

import json

import pytest

import main


def test_openapi_to_file(tmp_path):
    out = tmp_path / "openapi.json"
    assert main.main(["openapi", "--output", str(out)]) == 0
    document = json.loads(out.read_text(encoding="utf-8"))
    assert document["info"]["title"] == "Scaffold API"
    assert "/api/v1/auth/register" in document["paths"]
    assert "/api/v1/users/{user_id}" in document["paths"]


def test_openapi_to_stdout(capsys):
    assert main.main(["openapi"]) == 0
    assert json.loads(capsys.readouterr().out)["openapi"].startswith("3.")


def test_serve_passes_options_to_uvicorn(monkeypatch):
    calls = {}

    def fake_run(app, **kwargs):
        calls["app"] = app
        calls.update(kwargs)

    monkeypatch.setattr("uvicorn.run", fake_run)
    assert main.main(["serve", "--port", "9000"]) == 0
    assert calls == {"app": "asgi:app", "host": "127.0.0.1", "port": 9000, "reload": False}


def test_command_required():
    with pytest.raises(SystemExit):
        main.main([])
