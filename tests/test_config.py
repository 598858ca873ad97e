import os, sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from app.core.config import _env


def test_env_trims_whitespace_success(monkeypatch):
    monkeypatch.setenv("MEDIA_BUCKET", "  x \n")
    assert _env("MEDIA_BUCKET", "images") == "x"


def test_env_blank_counts_as_unset_success(monkeypatch):
    monkeypatch.setenv("TABLE_NAME", "   ")
    assert _env("TABLE_NAME") is None
    assert _env("TABLE_NAME", "fallback") == "fallback"


def test_env_missing_uses_default_success(monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    assert _env("PORT", "5000") == "5000"
