import os

import pytest

from conftest import T1, T2, touch
from kavin.core.detector import ChangeDetector


def _detector(files=(), directories=()):
    detector = ChangeDetector([str(p) for p in files], [str(d) for d in directories])
    detector.seed()
    return detector


def test_no_change_reports_nothing(tmp_path):
    a = tmp_path / "a.txt"
    touch(a, T1)
    detector = _detector([a])

    assert detector.detect_changes() is False
    assert detector.detect_changes() is False
    assert detector.files[str(a)] == T1


def test_modification_is_reported_once(tmp_path):
    a = tmp_path / "a.txt"
    touch(a, T1)
    detector = _detector([a])

    touch(a, T2)

    assert detector.detect_changes() is True
    assert detector.files[str(a)] == T2
    assert detector.detect_changes() is False


def test_deletion_is_reported(tmp_path):
    a = tmp_path / "a.txt"
    touch(a, T1)
    detector = _detector([a])

    a.unlink()

    assert detector.detect_changes() is True
    assert detector.files[str(a)] == 0
    assert detector.detect_changes() is False


def test_recreated_file_is_seeded_then_tracked(tmp_path):
    a = tmp_path / "a.txt"
    touch(a, T1)
    detector = _detector([a])
    a.unlink()
    assert detector.detect_changes() is True

    touch(a, T1)
    assert detector.detect_changes() is False
    assert detector.files[str(a)] == T1

    touch(a, T2)
    assert detector.detect_changes() is True


def test_changes_in_one_poll_are_coalesced(tmp_path):
    a = tmp_path / "a.txt"
    b = tmp_path / "b.txt"
    touch(a, T1)
    touch(b, T1)
    detector = _detector([a, b])

    touch(a, T2)
    touch(b, T2)

    assert detector.detect_changes() is True
    assert detector.files == {str(a): T2, str(b): T2}
    assert detector.detect_changes() is False


def test_new_file_in_directory_is_adopted_without_change(tmp_path):
    detector = _detector(directories=[tmp_path])
    assert detector.files == {}

    b = tmp_path / "b.txt"
    touch(b, T1)

    assert detector.detect_changes() is False
    assert detector.files == {str(b): T1}

    touch(b, T2)
    assert detector.detect_changes() is True


def test_rescan_is_idempotent(tmp_path):
    touch(tmp_path / "a.txt", T1)
    detector = _detector(directories=[tmp_path])

    assert detector.rescan_directories() == [str(tmp_path / "a.txt")]
    assert detector.rescan_directories() == []
    assert list(detector.files) == [str(tmp_path / "a.txt")]


def test_known_file_is_not_adopted_twice(tmp_path):
    a = tmp_path / "a.txt"
    touch(a, T1)
    detector = _detector(files=[a], directories=[tmp_path])

    assert detector.rescan_directories() == []
    assert detector.add_file(str(a)) is False
    assert len(detector.files) == 1


def test_rescan_is_not_recursive(tmp_path):
    nested = tmp_path / "nested"
    nested.mkdir()
    touch(nested / "deep.txt", T1)
    detector = _detector(directories=[tmp_path])

    assert detector.rescan_directories() == []
    assert detector.files == {}


@pytest.mark.skipif(os.name == "nt", reason="symlinks need privileges on Windows")
def test_symlinks_are_not_adopted(tmp_path):
    target = tmp_path / "outside.txt"
    touch(target, T1)
    watched = tmp_path / "watched"
    watched.mkdir()
    os.symlink(target, watched / "link.txt")
    detector = _detector(directories=[watched])

    assert detector.rescan_directories() == []


def test_vanished_directory_is_skipped(tmp_path):
    gone = tmp_path / "gone"
    gone.mkdir()
    detector = _detector(directories=[gone])
    gone.rmdir()

    assert detector.detect_changes() is False
    assert detector.files == {}
