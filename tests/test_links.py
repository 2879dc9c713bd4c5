"""
Tests for the symlink reconciler — setup, remove, cleanup, refresh.
"""

from pathlib import Path

import pytest

from rosenv.core.errors import CanonicalDirError, NotWritableError, VersionNotFoundError
from rosenv.core.models.links import (
    BROKEN,
    CANCELLED,
    CREATED,
    REMOVED,
    REPLACED,
    SKIPPED,
    UP_TO_DATE,
    Installation,
)
from rosenv.core.models.settings import Settings
from rosenv.core.services.links import (
    PROBE_FILE,
    apply_refresh,
    check_writable,
    cleanup_links,
    create_link,
    plan_refresh,
    remove_link,
    setup_links,
)
from tests.conftest import Answers


def _deny_touch(monkeypatch):
    def _touch(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "touch", _touch)


class TestCheckWritable:
    def test_writable(self, settings: Settings, canonical_dir: Path):
        check_writable(settings)
        assert not (canonical_dir / PROBE_FILE).exists()

    def test_missing_dir(self, tmp_path: Path):
        settings = Settings(canonical_dir=tmp_path / "missing", cache_dir=tmp_path)
        with pytest.raises(CanonicalDirError) as exc:
            check_writable(settings)
        assert "sudo mkdir -p" in exc.value.hint

    def test_not_writable(self, settings: Settings, monkeypatch):
        _deny_touch(monkeypatch)
        with pytest.raises(NotWritableError, match="not writable") as exc:
            check_writable(settings)
        assert "sudo chown" in exc.value.hint


class TestCreateLink:
    def test_creates(self, settings: Settings, canonical_dir: Path, make_install):
        target = make_install("ros-humble-desktop")
        result = create_link(settings, "humble", target, Answers())

        assert result.action == CREATED
        assert (canonical_dir / "humble").is_symlink()
        assert (canonical_dir / "humble").resolve() == target.resolve()

    def test_correct_link_is_untouched(self, settings: Settings, canonical_dir: Path, make_install):
        target = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(target)
        before = (canonical_dir / "humble").lstat().st_ino

        # Answers() with no replies fails if a prompt is shown
        result = create_link(settings, "humble", target, Answers())

        assert result.action == UP_TO_DATE
        assert (canonical_dir / "humble").lstat().st_ino == before

    def test_correct_link_untouched_even_when_forced(self, settings: Settings, canonical_dir: Path, make_install):
        target = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(target)
        result = create_link(settings, "humble", target, Answers(), force=True)
        assert result.action == UP_TO_DATE

    def test_declined_overwrite_keeps_old_target(self, settings: Settings, canonical_dir: Path, make_install):
        old = make_install("ros-humble-base")
        new = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(old)
        answers = Answers(False)

        result = create_link(settings, "humble", new, answers)

        assert result.action == SKIPPED
        assert result.previous == old
        assert (canonical_dir / "humble").resolve() == old.resolve()
        assert "already exists" in answers.questions[0]
        assert str(old) in answers.questions[0]

    def test_accepted_overwrite(self, settings: Settings, canonical_dir: Path, make_install):
        old = make_install("ros-humble-base")
        new = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(old)

        result = create_link(settings, "humble", new, Answers(True))

        assert result.action == REPLACED
        assert (canonical_dir / "humble").resolve() == new.resolve()

    def test_force_skips_prompt(self, settings: Settings, canonical_dir: Path, make_install):
        old = make_install("ros-humble-base")
        new = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(old)

        result = create_link(settings, "humble", new, Answers(), force=True)
        assert result.action == REPLACED

    def test_replaces_broken_link(self, settings: Settings, canonical_dir: Path, make_install, tmp_path: Path):
        (canonical_dir / "humble").symlink_to(tmp_path / "gone")
        target = make_install("ros-humble-desktop")

        result = create_link(settings, "humble", target, Answers(True))
        assert result.action == REPLACED
        assert (canonical_dir / "humble").exists()

    def test_declined_directory_is_kept(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").mkdir()
        (canonical_dir / "humble" / "keep.txt").write_text("data")
        target = make_install("ros-humble-desktop")
        answers = Answers(False)

        result = create_link(settings, "humble", target, answers)

        assert result.action == SKIPPED
        assert (canonical_dir / "humble" / "keep.txt").exists()
        assert "(directory)" in answers.questions[0]

    def test_prompt_names_plain_file(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").write_text("stray")
        answers = Answers(False)

        create_link(settings, "humble", make_install("ros-humble-desktop"), answers)

        assert "(file)" in answers.questions[0]
        assert "(directory)" not in answers.questions[0]


class TestSetupLinks:
    def test_links_all(self, settings: Settings, canonical_dir: Path, make_install):
        make_install("ros-humble-desktop")
        make_install("ros-jazzy-desktop")

        results = list(setup_links(settings, Answers()))

        assert [(r.version, r.action) for r in results] == [("humble", CREATED), ("jazzy", CREATED)]
        assert sorted(p.name for p in canonical_dir.iterdir()) == ["humble", "jazzy"]

    def test_rerun_is_noop(self, settings: Settings, make_install):
        make_install("ros-humble-desktop")
        list(setup_links(settings, Answers()))

        results = list(setup_links(settings, Answers()))
        assert [r.action for r in results] == [UP_TO_DATE]

    def test_nothing_to_link(self, tmp_path: Path, cache_dir: Path):
        # No installations means no writability check either
        settings = Settings(canonical_dir=tmp_path / "missing", cache_dir=cache_dir)
        assert list(setup_links(settings, Answers())) == []

    def test_missing_canonical_dir_fails_before_any_link(self, tmp_path: Path, cache_dir: Path, make_install):
        make_install("ros-humble-desktop")
        settings = Settings(canonical_dir=tmp_path / "missing", cache_dir=cache_dir)

        with pytest.raises(CanonicalDirError):
            list(setup_links(settings, Answers()))
        assert not (tmp_path / "missing").exists()

    def test_not_writable_fails_before_any_link(self, settings: Settings, canonical_dir: Path, make_install, monkeypatch):
        make_install("ros-humble-desktop")
        _deny_touch(monkeypatch)

        with pytest.raises(NotWritableError):
            list(setup_links(settings, Answers()))
        assert list(canonical_dir.iterdir()) == []

    def test_explicit_installations(self, settings: Settings, canonical_dir: Path, make_install):
        make_install("ros-humble-desktop")
        jazzy = make_install("ros-jazzy-desktop")

        results = list(setup_links(settings, Answers(), installations=[Installation("jazzy", jazzy)]))
        assert [r.version for r in results] == ["jazzy"]
        assert not (canonical_dir / "humble").exists()


class TestRemoveLink:
    def test_not_found(self, settings: Settings):
        with pytest.raises(VersionNotFoundError, match="'humble' not found"):
            remove_link(settings, "humble", Answers())

    def test_declined(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))

        result, inst = remove_link(settings, "humble", Answers(False))

        assert result.action == CANCELLED
        assert inst is None
        assert (canonical_dir / "humble").is_symlink()

    def test_removes_link_only(self, settings: Settings, canonical_dir: Path, make_install):
        target = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(target)
        answers = Answers(True)

        result, inst = remove_link(settings, "humble", answers)

        assert result.action == REMOVED
        assert result.previous == target
        assert inst == Installation("humble", target)
        assert not (canonical_dir / "humble").is_symlink()
        assert target.is_dir()
        assert answers.questions == [f"Remove {canonical_dir / 'humble'}?"]

    def test_force(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))
        result, _ = remove_link(settings, "humble", Answers(), force=True)
        assert result.action == REMOVED

    def test_broken_link(self, settings: Settings, canonical_dir: Path, tmp_path: Path):
        (canonical_dir / "iron").symlink_to(tmp_path / "gone")

        result, inst = remove_link(settings, "iron", Answers(True))

        assert result.action == REMOVED
        assert inst is None
        assert not (canonical_dir / "iron").is_symlink()

    @pytest.mark.parametrize("version", ["..", "", ".", "humble/../..", "../ros"])
    def test_rejects_path_like_versions(self, settings: Settings, canonical_dir: Path, version):
        (canonical_dir / "humble").mkdir()
        sibling = canonical_dir.parent / "other-vendor"
        sibling.mkdir()

        with pytest.raises(VersionNotFoundError, match="Invalid distribution name"):
            remove_link(settings, version, Answers(), force=True)

        assert canonical_dir.is_dir()
        assert (canonical_dir / "humble").is_dir()
        assert sibling.is_dir()

    def test_unreadable_cache_still_reports_removal(self, settings: Settings, canonical_dir: Path, make_install, monkeypatch):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))

        def _unreadable(settings):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr("rosenv.core.services.scanner.scan_installations", _unreadable)

        result, inst = remove_link(settings, "humble", Answers(), force=True)

        assert result.action == REMOVED
        assert inst is None
        assert not (canonical_dir / "humble").is_symlink()

    def test_not_writable_checked_before_prompt(self, settings: Settings, canonical_dir: Path, make_install, monkeypatch):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))
        _deny_touch(monkeypatch)
        answers = Answers()

        with pytest.raises(NotWritableError):
            remove_link(settings, "humble", answers)
        assert answers.questions == []


class TestCleanupLinks:
    def test_empty(self, settings: Settings):
        assert cleanup_links(settings, Answers()) == []

    def test_declined(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))

        results = cleanup_links(settings, Answers(False))

        assert [r.action for r in results] == [CANCELLED]
        assert (canonical_dir / "humble").is_symlink()

    def test_removes_symlinks_keeps_directories(self, settings: Settings, canonical_dir: Path, make_install, tmp_path: Path):
        target = make_install("ros-humble-desktop")
        (canonical_dir / "humble").symlink_to(target)
        (canonical_dir / "iron").symlink_to(tmp_path / "gone")
        (canonical_dir / "jazzy").mkdir()
        answers = Answers(True)

        results = cleanup_links(settings, answers)

        assert [(r.version, r.action) for r in results] == [
            ("humble", REMOVED),
            ("iron", REMOVED),
            ("jazzy", SKIPPED),
        ]
        assert sorted(p.name for p in canonical_dir.iterdir()) == ["jazzy"]
        assert target.is_dir()
        assert len(answers.questions) == 1

    def test_force(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))
        results = cleanup_links(settings, Answers(), force=True)
        assert [r.action for r in results] == [REMOVED]


class TestRefresh:
    def test_plan(self, settings: Settings, canonical_dir: Path, make_install, tmp_path: Path):
        humble = make_install("ros-humble-desktop")
        make_install("ros-jazzy-desktop")
        (canonical_dir / "humble").symlink_to(humble)
        (canonical_dir / "iron").symlink_to(tmp_path / "gone")

        plan = plan_refresh(settings)

        assert [(r.version, r.action) for r in plan.existing] == [
            ("humble", UP_TO_DATE),
            ("iron", BROKEN),
        ]
        assert [r.version for r in plan.broken] == ["iron"]
        assert [i.version for i in plan.new] == ["jazzy"]

    def test_plan_skips_directories(self, settings: Settings, canonical_dir: Path, make_install):
        make_install("ros-humble-desktop")
        (canonical_dir / "humble").mkdir()

        plan = plan_refresh(settings)
        assert plan.existing == []
        assert plan.new == []

    def test_apply_links_new_only(self, settings: Settings, canonical_dir: Path, make_install):
        old = make_install("ros-humble-base")
        make_install("ros-jazzy-desktop")
        (canonical_dir / "humble").symlink_to(old)

        results = list(apply_refresh(settings, plan_refresh(settings), Answers()))

        assert [(r.version, r.action) for r in results] == [("jazzy", CREATED)]
        assert (canonical_dir / "humble").resolve() == old.resolve()

    def test_apply_nothing_new(self, settings: Settings, canonical_dir: Path, make_install):
        (canonical_dir / "humble").symlink_to(make_install("ros-humble-desktop"))
        assert list(apply_refresh(settings, plan_refresh(settings), Answers())) == []
