"""
Pytest Configuration

Makes ``src`` importable when the package is not installed, scrubs
``HTTPCALL_*`` variables so settings tests start from defaults, and exposes
the shared HTTP mocking fixtures.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from fixtures.http_mocking import http_mock, scripted  # noqa: E402,F401


@pytest.fixture(autouse=True)
def _clean_httpcall_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove ``HTTPCALL_*`` variables inherited from the developer shell."""
    for key in list(os.environ):
        if key.upper().startswith("HTTPCALL_"):
            monkeypatch.delenv(key, raising=False)
