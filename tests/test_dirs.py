import logging
import os

import pytest

from conckit.dirs import check_dir_path, record


def test_empty_path_is_rejected():
    with pytest.raises(ValueError, match="invalid dir path"):
        check_dir_path("")


def test_creates_missing_nested_directory(tmp_path):
    target = tmp_path / "a" / "b"
    result = check_dir_path(str(target))
    assert result == str(target)
    assert os.path.isdir(result)


def test_existing_directory_is_returned(tmp_path):
    assert check_dir_path(str(tmp_path)) == str(tmp_path)
    assert os.path.isdir(tmp_path)


def test_relative_path_becomes_absolute(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    result = check_dir_path("pictures")
    assert os.path.isabs(result)
    assert result == os.path.join(os.getcwd(), "pictures")
    assert os.path.isdir(result)


def test_file_is_not_a_directory(tmp_path):
    target = tmp_path / "file.txt"
    target.write_text("x")
    with pytest.raises(NotADirectoryError, match="not directory"):
        check_dir_path(str(target))


@pytest.mark.parametrize(
    "level, expected",
    [(0, logging.INFO), (1, logging.WARNING), (2, logging.INFO)],
)
def test_record_levels(caplog, level, expected):
    caplog.set_level(logging.DEBUG, logger="conckit.dirs")
    record(level, "some message")
    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (expected, "some message")
    ]


def test_record_ignores_empty_content(caplog):
    caplog.set_level(logging.DEBUG, logger="conckit.dirs")
    record(1, "")
    assert caplog.records == []


def test_record_ignores_unknown_level(caplog):
    caplog.set_level(logging.DEBUG, logger="conckit.dirs")
    record(7, "some message")
    assert caplog.records == []