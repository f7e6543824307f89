from __future__ import annotations

import importlib.util
from pathlib import Path

import pytest

from herday.webpush.encoding import b64url_decode
from herday.webpush.vapid import VapidKeyPair

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "generate_vapid_keys.py"


def _load_script():
  spec = importlib.util.spec_from_file_location("generate_vapid_keys", SCRIPT)
  module = importlib.util.module_from_spec(spec)
  spec.loader.exec_module(module)
  return module


def test_prints_usable_env_lines(monkeypatch, capsys):
  module = _load_script()
  monkeypatch.setattr("sys.argv", ["generate_vapid_keys.py", "--subject", "mailto:ops@herday.example"])

  assert module.main() == 0

  lines = dict(line.split("=", 1) for line in capsys.readouterr().out.splitlines() if line.startswith("HERDAY_"))
  assert lines["HERDAY_VAPID_SUBJECT"] == "mailto:ops@herday.example"
  assert len(b64url_decode(lines["HERDAY_VAPID_PUBLIC_KEY"])) == 65
  VapidKeyPair(public_key=lines["HERDAY_VAPID_PUBLIC_KEY"], private_key=lines["HERDAY_VAPID_PRIVATE_KEY"], subject=lines["HERDAY_VAPID_SUBJECT"]).signing_key()


def test_rejects_bad_subject(monkeypatch):
  module = _load_script()
  monkeypatch.setattr("sys.argv", ["generate_vapid_keys.py", "--subject", "ops@herday.example"])

  with pytest.raises(SystemExit):
    module.main()
