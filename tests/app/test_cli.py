from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from unisync.domain.model import Snapshot
from unisync.domain.reconciliation import Action, DetectionReport, MergeResult
from unisync.ui import cli as cli_module

if TYPE_CHECKING:
    from pathlib import Path


def test_cli_merge_passes_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_merge(*args: object, **kwargs: object) -> MergeResult:
        captured["args"] = args
        captured.update(kwargs)
        return MergeResult(snapshot=Snapshot())

    monkeypatch.setattr(cli_module, "merge_backups", fake_merge)

    cli_module.main(
        [
            "merge",
            "local.json",
            "external.json",
            "-o",
            "merged.json",
            "--override",
            "units:A=take_external",
            "--override",
            "dynamicDataStore:g1:r1=keep_local",
        ]
    )

    assert captured["args"] == ("local.json", "external.json", "merged.json")
    assert captured["overrides"] == {
        "units:A": Action.TAKE_EXTERNAL,
        "dynamicDataStore:g1:r1": Action.KEEP_LOCAL,
    }
    assert captured["mode"] == "items"
    assert captured["deselect"] == []


def test_cli_merge_tree_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_merge(*_: object, **kwargs: object) -> MergeResult:
        captured.update(kwargs)
        return MergeResult(snapshot=Snapshot())

    monkeypatch.setattr(cli_module, "merge_backups", fake_merge)

    cli_module.main(
        [
            "merge",
            "l.json",
            "e.json",
            "-o",
            "m.json",
            "--mode",
            "tree",
            "--deselect",
            "faculties",
            "--override",
            "units:A=take_external",
        ]
    )

    assert captured["mode"] == "tree"
    assert captured["deselect"] == ["faculties"]
    assert captured["overrides"] == {"units:A": Action.TAKE_EXTERNAL}


@pytest.mark.parametrize(
    "extra",
    [
        ["--override", "units:A=overwrite"],
        ["--override", "units:A"],
        ["--deselect", "units"],
    ],
)
def test_cli_rejects_invalid_arguments(monkeypatch: pytest.MonkeyPatch, extra: list[str]) -> None:
    def fake_merge(*_: object, **__: object) -> MergeResult:
        raise AssertionError("merge must not run")

    monkeypatch.setattr(cli_module, "merge_backups", fake_merge)

    with pytest.raises(SystemExit) as exc:
        cli_module.main(["merge", "l.json", "e.json", "-o", "m.json", *extra])

    assert exc.value.code == 2


def test_cli_runtime_failure_exits_with_one(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_diff(*_: object, **__: object) -> DetectionReport:
        raise FileNotFoundError("local.json")

    monkeypatch.setattr(cli_module, "diff_backups", fake_diff)

    with pytest.raises(SystemExit) as exc:
        cli_module.main(["diff", "local.json", "external.json"])

    assert exc.value.code == 1


def test_cli_diff_prints_items_and_issues(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    local = tmp_path / "local.json"
    external = tmp_path / "external.json"
    local.write_text('{"units": [{"unit_id": "A", "unit_name": "Old"}]}', encoding="utf-8")
    external.write_text(
        '{"units": [{"unit_id": "A", "unit_name": "New"}], "faculties": []}',
        encoding="utf-8",
    )

    cli_module.main(["diff", str(local), str(external)])

    out = capsys.readouterr().out
    assert "modified" in out
    assert "units:A" in out
    assert "Skipped humanResources: missing from backup" in out


def test_cli_diff_reports_no_differences(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
) -> None:
    path = tmp_path / "same.json"
    path.write_text('{"units": [], "faculties": [], "humanResources": []}', encoding="utf-8")

    cli_module.main(["diff", str(path), str(path)])

    assert "No differences found" in capsys.readouterr().out
