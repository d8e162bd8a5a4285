from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from worksheet.cli import main

SCHEMA: dict[str, Any] = {
    "version": 1,
    "sections": [
        {
            "id": "s1",
            "fields": [
                {
                    "id": "scores",
                    "type": "table",
                    "label": "Scores",
                    "columns": [
                        {"id": "before", "type": "number"},
                        {"id": "after", "type": "number"},
                    ],
                },
                {
                    "id": "change",
                    "type": "computed",
                    "label": "Change",
                    "computation": {
                        "operation": "difference",
                        "field_a": "scores.before",
                        "field_b": "scores.after",
                        "format": "percentage_change",
                    },
                },
            ],
        }
    ],
}

LEGACY: dict[str, Any] = {
    "version": 1,
    "layout": "formulation_vicious_flower",
    "sections": [
        {"id": "centre", "title": "Problem", "fields": []},
        {"id": "petals", "fields": [], "default_items": [{"petal_label": "Avoidance"}]},
    ],
}


def _write(tmp: Path, name: str, obj: Any) -> str:
    p = tmp / name
    p.write_text(json.dumps(obj), encoding="utf-8")
    return str(p)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as excinfo:
        main(argv)
    return excinfo.value.code


@pytest.fixture(autouse=True)
def _isolated(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    for key in ("WORKSHEET_AUTO_MIGRATE", "WORKSHEET_REJECT_LEGACY_LAYOUTS", "WORKSHEET_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


def test_validate_ok_and_invalid(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["validate", _write(tmp_path, "s.json", SCHEMA)]) == 0
    assert json.loads(capsys.readouterr().out) == {"valid": True}

    broken = {"sections": [{"id": "s1", "fields": [{"id": "x", "type": "slider", "label": "X"}]}]}
    assert _run(["validate", _write(tmp_path, "b.json", broken)]) == 1
    out = json.loads(capsys.readouterr().out)
    assert out["valid"] is False
    assert out["error"].startswith('Unsupported field type "slider"')


def test_validate_unreadable(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["validate", str(tmp_path / "absent.json")]) == 2
    assert "[ERROR]" in capsys.readouterr().err


def test_legacy_schema_validates_after_auto_migration(tmp_path: Path) -> None:
    path = _write(tmp_path, "legacy.json", LEGACY)
    assert _run(["validate", path]) == 0

    config = tmp_path / "strict.toml"
    config.write_text("[engine]\nauto_migrate = false\n", encoding="utf-8")
    assert _run(["validate", path, "--config", str(config)]) == 1


def test_evaluate(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    values = {"scores": [{"before": 40, "after": 70}, {"before": 50, "after": 90}]}
    code = _run(["evaluate", _write(tmp_path, "s.json", SCHEMA), _write(tmp_path, "v.json", values)])
    assert code == 0
    assert json.loads(capsys.readouterr().out) == {"change": "+35% (45% → 80%)"}


def test_migrate_to_file(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    out_path = tmp_path / "out" / "migrated.json"
    assert _run(["migrate", _write(tmp_path, "legacy.json", LEGACY), "--out", str(out_path)]) == 0
    migrated = json.loads(out_path.read_text(encoding="utf-8"))
    field = migrated["sections"][-1]["fields"][0]
    assert field["layout"] == "radial"
    assert [n["id"] for n in field["nodes"]] == ["centre", "petal-0"]
    captured = capsys.readouterr()
    assert "[INFO] Wrote" in captured.out
    assert "formulation_vicious_flower -> radial" in captured.err


def test_fingerprint_is_stable_across_key_order(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    reordered = {"sections": SCHEMA["sections"], "version": 1}
    assert _run(["fingerprint", _write(tmp_path, "a.json", SCHEMA)]) == 0
    first = capsys.readouterr().out.strip()
    assert _run(["fingerprint", _write(tmp_path, "b.json", reordered)]) == 0
    assert capsys.readouterr().out.strip() == first
    assert len(first) == 64


def test_templates_listing(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["templates", "--layout", "three_systems"]) == 0
    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == ["tpl-cft-three-systems\tthree_systems\tCFT Three Systems"]


def test_unknown_command(capsys: pytest.CaptureFixture[str]) -> None:
    assert _run(["frobnicate"]) == 2
    assert "Unknown command: frobnicate" in capsys.readouterr().err


def test_no_arguments_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    main([])
    assert "usage: worksheet" in capsys.readouterr().out
