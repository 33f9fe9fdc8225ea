"""
Unit tests for journal preallocation.

Tests cover:
- Directory and file layout
- File sizes and contents
- Permissions
- Failure reporting
"""

import os
import stat
import tempfile
from pathlib import Path

import pytest

from agent.statedb.errors import PreallocationError
from agent.statedb.journal import (
    PREALLOC_FILE_COUNT,
    PREALLOC_FILE_SIZE,
    journal_dir,
    make_journal_dirs,
)


class TestMakeJournalDirs:
    """Tests for make_journal_dirs."""

    @pytest.fixture
    def db_dir(self):
        """Create temporary dbpath (not yet existing)."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield os.path.join(tmpdir, "db")

    def test_creates_three_files(self, db_dir):
        """Exactly three prealloc files are created."""
        make_journal_dirs(db_dir)

        names = sorted(os.listdir(journal_dir(db_dir)))
        assert names == ["prealloc.0", "prealloc.1", "prealloc.2"]
        assert len(names) == PREALLOC_FILE_COUNT

    def test_files_are_at_least_one_mib_of_zeroes(self, db_dir):
        """Each file is >= 1 MiB and zero-filled."""
        paths = make_journal_dirs(db_dir)

        for path in paths:
            data = Path(path).read_bytes()
            assert len(data) >= PREALLOC_FILE_SIZE
            assert data.count(0) == len(data)

    def test_journal_dir_is_owner_only(self, db_dir):
        """Journal directory is created with 0700."""
        make_journal_dirs(db_dir)

        mode = stat.S_IMODE(os.stat(journal_dir(db_dir)).st_mode)
        assert mode == 0o700

    def test_creates_missing_parents(self, db_dir):
        """The dbpath itself is created when missing."""
        assert not os.path.exists(db_dir)

        make_journal_dirs(db_dir)

        assert os.path.isdir(db_dir)

    def test_rewrites_partial_files(self, db_dir):
        """A truncated file from a failed run is rewritten to full size."""
        jdir = journal_dir(db_dir)
        jdir.mkdir(parents=True)
        (jdir / "prealloc.1").write_bytes(b"\0" * 10)

        make_journal_dirs(db_dir)

        assert os.path.getsize(jdir / "prealloc.1") >= PREALLOC_FILE_SIZE

    def test_unwritable_location_raises(self, db_dir):
        """A file where the journal dir should be is a PreallocationError."""
        os.makedirs(db_dir)
        Path(db_dir, "journal").write_text("not a directory")

        with pytest.raises(PreallocationError) as exc_info:
            make_journal_dirs(db_dir)

        assert exc_info.value.code == "PREALLOCATION_ERROR"
        assert "journal" in exc_info.value.path

    def test_open_failure_names_file(self, db_dir):
        """A prealloc path that cannot be opened is reported by name."""
        jdir = journal_dir(db_dir)
        (jdir / "prealloc.0").mkdir(parents=True)

        with pytest.raises(PreallocationError) as exc_info:
            make_journal_dirs(db_dir)

        assert exc_info.value.path.endswith("prealloc.0")
        assert isinstance(exc_info.value.__cause__, OSError)
