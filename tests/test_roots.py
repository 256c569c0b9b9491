from __future__ import annotations

import logging

from conftest import FakeProc, row

from portprobe.collectors.roots import (
    candidate_roots, detect_containerized, resolve_proc_root, scan_roots, table_path,
)
from portprobe.models import RuntimeEnvironmentState


class TestResolveProcRoot:
    def test_usable_override_wins(self, tmp_path, proc, cfg_for):
        host = FakeProc(tmp_path / "host")
        host.table("tcp", [row("00000000:0016", inode=1)])
        proc.table("tcp", [])
        cfg = cfg_for(proc, proc_root=host.path)
        assert resolve_proc_root(cfg) == host.path

    def test_unusable_override_is_logged_and_skipped(self, tmp_path, proc, cfg_for, caplog):
        alt = FakeProc(tmp_path / "alt")
        alt.table("tcp", [])
        cfg = cfg_for(proc, proc_root=str(tmp_path / "missing"), candidate_roots=(alt.path,))
        with caplog.at_level(logging.WARNING):
            assert resolve_proc_root(cfg) == alt.path
        assert any("unusable" in r.getMessage() for r in caplog.records)

    def test_candidates_probed_in_order(self, tmp_path, proc, cfg_for):
        first = FakeProc(tmp_path / "first")
        second = FakeProc(tmp_path / "second")
        second.table("tcp", [])
        first.table("tcp", [])
        cfg = cfg_for(proc, candidate_roots=(first.path, second.path))
        assert resolve_proc_root(cfg) == first.path

    def test_nothing_usable_falls_back_to_default(self, tmp_path, proc, cfg_for):
        cfg = cfg_for(proc, proc_root=str(tmp_path / "nope"), candidate_roots=(str(tmp_path / "nada"),))
        assert resolve_proc_root(cfg) == proc.path

    def test_candidate_list_is_deduplicated(self, proc, cfg_for):
        cfg = cfg_for(proc, proc_root=proc.path, candidate_roots=("/a", proc.path, "/a"))
        assert candidate_roots(cfg) == [proc.path, "/a"]


class TestDetectContainerized:
    def _pids(self, proc, n):
        for pid in range(1, n + 1):
            (proc.root / str(pid)).mkdir()
        (proc.root / "self").mkdir()
        (proc.root / "sys").mkdir()

    def test_marker_and_many_pids(self, tmp_path, proc, cfg_for):
        (tmp_path / ".dockerenv").touch()
        self._pids(proc, 101)
        assert detect_containerized(proc.path, cfg_for(proc)) is True

    def test_marker_with_few_pids(self, tmp_path, proc, cfg_for):
        (tmp_path / ".dockerenv").touch()
        self._pids(proc, 100)
        assert detect_containerized(proc.path, cfg_for(proc)) is False

    def test_many_pids_without_marker(self, proc, cfg_for):
        self._pids(proc, 150)
        assert detect_containerized(proc.path, cfg_for(proc)) is False

    def test_unlistable_root_is_not_containerized(self, tmp_path, proc, cfg_for):
        (tmp_path / ".dockerenv").touch()
        assert detect_containerized(str(tmp_path / "gone"), cfg_for(proc)) is False


def test_scan_roots_keep_priority_order(proc, cfg_for):
    cfg = cfg_for(proc, scan_aliases=("/host/proc",))
    assert scan_roots(cfg, "/host/proc") == ["/host/proc", proc.path]
    assert scan_roots(cfg, "/hostproc") == ["/hostproc", "/host/proc", proc.path]


def test_table_path_follows_namespace_policy():
    assert table_path(RuntimeEnvironmentState("/host/proc", False), "tcp") == "/host/proc/net/tcp"
    assert table_path(RuntimeEnvironmentState("/host/proc", True), "udp6") == "/host/proc/1/net/udp6"
