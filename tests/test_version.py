import platform

import pytest

from oraskit import version


def test_get_version_with_build_metadata():
    assert version.get_version() == "1.0.0+unreleased"


def test_get_version_without_build_metadata(monkeypatch):
    monkeypatch.setattr(version, "BUILD_METADATA", "")
    assert version.get_version() == version.VERSION


def test_version_items_without_git_info(monkeypatch):
    monkeypatch.setattr(version, "GIT_COMMIT", "")
    monkeypatch.setattr(version, "GIT_TREE_STATE", "")
    items = version.version_items()
    assert [label for label, _ in items] == ["Version", "Python version"]
    assert items[1][1] == platform.python_version()


def test_version_items_with_git_info(monkeypatch):
    monkeypatch.setattr(version, "GIT_COMMIT", "abc123")
    monkeypatch.setattr(version, "GIT_TREE_STATE", "clean")
    items = version.version_items()
    assert items[2:] == [("Git commit", "abc123"), ("Git tree state", "clean")]


def test_main_aligns_values(monkeypatch, capsys):
    monkeypatch.setattr(version, "GIT_COMMIT", "abc123")
    monkeypatch.setattr(version, "GIT_TREE_STATE", "clean")
    assert version.main([]) == 0
    lines = capsys.readouterr().out.splitlines()
    items = version.version_items()
    assert len(lines) == len(items)
    starts = set()
    for line, (label, value) in zip(lines, items):
        assert line.startswith(label + ": ")
        assert line.endswith(value)
        starts.add(len(line) - len(value))
    assert len(starts) == 1


def test_main_rejects_arguments():
    with pytest.raises(SystemExit):
        version.main(["extra"])