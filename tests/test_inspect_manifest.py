"""Unit tests for the inspect_manifest script."""
# pylint: disable=import-error
from inspect_manifest import main


def test_lists_tables_and_weapons(manifest_path, capsys):
    assert main([str(manifest_path), "2"]) == 0
    out = capsys.readouterr().out
    assert "DestinyInventoryItemDefinition" in out
    assert "Fatebringer - Hand Cannon" in out
    assert "Ace of Spades" not in out
    assert "Total weapons found: 3" in out


def test_invalid_count_is_reported(manifest_path, capsys):
    assert main([str(manifest_path), "lots"]) == 2
    assert "Invalid count" in capsys.readouterr().out


def test_missing_database(tmp_path, capsys):
    assert main([str(tmp_path / "missing.content")]) == 1
    assert "Manifest error:" in capsys.readouterr().out
