"""
Unit tests for test file loading and the file watcher.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

import pytest

from jaguar.errors import TestLoadError
from jaguar.harness import Jaguar
from jaguar.loader import discover_test_files, is_test_file, load_test_file, load_test_files
from jaguar.watch import FileWatcher

SAMPLE_FILE = '''
from jaguar import describe, expect, it, run_tests


@describe("Math")
def _():
    it("adds", lambda: expect(1 + 1).to_be(2))


run_tests()
'''

PLUGIN_FILE = '''
from jaguar import it, on_test_event

on_test_event("test_pass", lambda event: print("PLUGIN", event.title))

it("adds", lambda: None)
'''


class TestDiscovery:
    """Tests for discover_test_files."""

    def test_finds_test_modules_recursively(self, temp_dir: Path) -> None:
        """Test both naming conventions are discovered, other files ignored."""
        (temp_dir / "nested").mkdir()
        (temp_dir / "test_math.py").write_text("")
        (temp_dir / "nested" / "strings_test.py").write_text("")
        (temp_dir / "helpers.py").write_text("")
        (temp_dir / ".hidden").mkdir()
        (temp_dir / ".hidden" / "test_hidden.py").write_text("")

        files = discover_test_files([temp_dir])

        assert [f.name for f in files] == ["strings_test.py", "test_math.py"]

    def test_explicit_file_is_kept(self, temp_dir: Path) -> None:
        """Test a file named directly is loaded whatever its name."""
        path = temp_dir / "suite.py"
        path.write_text("")

        assert discover_test_files([path, path]) == [path.resolve()]

    def test_missing_path_raises(self, temp_dir: Path) -> None:
        """Test nonexistent paths are reported."""
        with pytest.raises(TestLoadError, match="Path not found"):
            discover_test_files([temp_dir / "missing"])

    def test_is_test_file(self) -> None:
        """Test the naming conventions."""
        assert is_test_file(Path("test_api.py"))
        assert is_test_file(Path("api_test.py"))
        assert not is_test_file(Path("api.py"))
        assert not is_test_file(Path("test_api.txt"))


class TestLoading:
    """Tests for importing test files."""

    def test_load_registers_into_default_harness(self, default_harness: Jaguar, temp_dir: Path) -> None:
        """Test loading registers suites and suppresses run_tests."""
        path = temp_dir / "test_math.py"
        path.write_text(SAMPLE_FILE)

        load_test_file(path)

        assert [t.title for t in default_harness.tree.iter_tests()] == ["adds"]
        assert not default_harness.collecting

        summary = default_harness.run_sync(reporter=False)
        assert summary.passed == 1

    def test_load_test_files(self, default_harness: Jaguar, temp_dir: Path) -> None:
        """Test loading every discovered file."""
        (temp_dir / "test_one.py").write_text(SAMPLE_FILE)
        (temp_dir / "test_two.py").write_text(SAMPLE_FILE)

        files = load_test_files([temp_dir])

        assert len(files) == 2
        assert default_harness.tree.test_count == 2

    def test_import_error_raises_load_error(self, default_harness: Jaguar, temp_dir: Path) -> None:
        """Test a broken file raises TestLoadError with the cause chained."""
        path = temp_dir / "test_broken.py"
        path.write_text("raise RuntimeError('cannot import')\n")

        with pytest.raises(TestLoadError, match="cannot import") as exc_info:
            load_test_file(path)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert not default_harness.collecting

    def test_reload_does_not_duplicate_file_listeners(
        self, default_harness: Jaguar, temp_dir: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test listeners a file subscribes are replaced, not stacked, on reload."""
        path = temp_dir / "test_plugin.py"
        path.write_text(PLUGIN_FILE)
        per_run: list[int] = []

        for _ in range(3):
            default_harness.reset()
            load_test_file(path)
            default_harness.run_sync(reporter=False)
            per_run.append(capsys.readouterr().out.count("PLUGIN"))

        assert per_run == [1, 1, 1]
        assert default_harness.bus.listener_count("test_pass") == 1


class TestFileWatcher:
    """Tests for FileWatcher."""

    def test_no_changes(self, temp_dir: Path) -> None:
        """Test an untouched tree reports nothing."""
        (temp_dir / "test_a.py").write_text("")
        watcher = FileWatcher([temp_dir])

        assert watcher.changed_files() == []

    def test_detects_modified_added_and_removed(self, temp_dir: Path) -> None:
        """Test modifications, additions and removals are reported once."""
        existing = temp_dir / "test_a.py"
        removed = temp_dir / "test_b.py"
        existing.write_text("")
        removed.write_text("")
        watcher = FileWatcher([temp_dir])

        stat = existing.stat()
        os.utime(existing, (stat.st_atime, stat.st_mtime + 10))
        removed.unlink()
        added = temp_dir / "test_c.py"
        added.write_text("")

        assert set(watcher.changed_files()) == {existing, removed, added}
        assert watcher.changed_files() == []

    def test_ignores_non_python_files(self, temp_dir: Path) -> None:
        """Test only .py files are watched under directories."""
        watcher = FileWatcher([temp_dir])
        (temp_dir / "notes.txt").write_text("")

        assert watcher.changed_files() == []

    @pytest.mark.asyncio
    async def test_wait_for_change(self, temp_dir: Path) -> None:
        """Test waiting resolves once a file changes."""
        watcher = FileWatcher([temp_dir], interval_seconds=0.01)

        async def touch() -> None:
            await asyncio.sleep(0.03)
            (temp_dir / "test_new.py").write_text("")

        toucher = asyncio.create_task(touch())
        changed = await asyncio.wait_for(watcher.wait_for_change(), timeout=2)
        await toucher

        assert [p.name for p in changed] == ["test_new.py"]
