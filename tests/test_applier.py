"""Tests for the local file-system applier and apply_operations."""

from conftest import RecordingApplier
from scl.applier import LocalFileSystemApplier, apply_operations
from scl.state import FileOperation


class TestLocalFileSystemApplier:
    def test_create_makes_parent_dirs(self, tmp_path):
        target = tmp_path / "a" / "b" / "c.txt"
        result = LocalFileSystemApplier().create(str(target), "hello")
        assert result.ok
        assert target.read_text(encoding="utf-8") == "hello"

    def test_create_overwrites_existing_file(self, tmp_path):
        target = tmp_path / "f.txt"
        target.write_text("old")
        assert LocalFileSystemApplier().create(str(target), "new").ok
        assert target.read_text() == "new"

    def test_create_on_directory_fails(self, tmp_path):
        result = LocalFileSystemApplier().create(str(tmp_path), "x")
        assert not result.ok
        assert "is a directory" in result.error

    def test_write_all(self, tmp_path):
        target = tmp_path / "w.txt"
        assert LocalFileSystemApplier().write_all(str(target), "content").ok
        assert target.read_text() == "content"

    def test_delete_file(self, tmp_path):
        target = tmp_path / "d.txt"
        target.write_text("x")
        assert LocalFileSystemApplier().delete(str(target)).ok
        assert not target.exists()

    def test_delete_directory_tree(self, tmp_path):
        folder = tmp_path / "pkg"
        (folder / "sub").mkdir(parents=True)
        (folder / "sub" / "m.py").write_text("")
        assert LocalFileSystemApplier().delete(str(folder)).ok
        assert not folder.exists()

    def test_delete_missing_returns_error(self, tmp_path):
        result = LocalFileSystemApplier().delete(str(tmp_path / "nope"))
        assert not result.ok
        assert "does not exist" in result.error


class TestApplyOperations:
    def test_applies_in_order_on_disk(self, tmp_path):
        root = str(tmp_path)
        ops = [
            FileOperation("create", "src/app.py", "v1"),
            FileOperation("modify", "src/app.py", "v2"),
            FileOperation("create", "tmp.txt", "t"),
            FileOperation("delete", "tmp.txt"),
        ]
        applied = apply_operations(ops, root, LocalFileSystemApplier())

        assert all(a.result.ok for a in applied)
        assert (tmp_path / "src" / "app.py").read_text() == "v2"
        assert not (tmp_path / "tmp.txt").exists()

    def test_escaping_path_skipped_rest_applied(self, tmp_path):
        errors = []
        applier = RecordingApplier()
        ops = [
            FileOperation("create", "../outside.txt", "x"),
            FileOperation("create", "inside.txt", "y"),
        ]
        applied = apply_operations(ops, str(tmp_path), applier, on_error=errors.append)

        assert applier.calls == [("create", str(tmp_path / "inside.txt"), "y")]
        assert applied[0].target == ""
        assert not applied[0].result.ok
        assert len(errors) == 1

    def test_failed_apply_reported_and_batch_continues(self):
        errors = []
        applier = RecordingApplier(fail_paths={"/proj/a"})
        ops = [FileOperation("delete", "a"), FileOperation("delete", "b")]

        applied = apply_operations(ops, "/proj", applier, on_error=errors.append)

        assert [a.result.ok for a in applied] == [False, True]
        assert errors == ["Failed to delete '/proj/a': disk full"]

    def test_raising_applier_is_contained(self):
        class Exploding:
            def create(self, path, content):
                raise PermissionError("denied")

        applied = apply_operations([FileOperation("create", "x")], "/proj", Exploding())
        assert not applied[0].result.ok
        assert "denied" in applied[0].result.error
