"""Tests for writing fragments to disk."""

from __future__ import annotations

import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from vhostctl.errors import FragmentWriteError
from vhostctl.services import composer
from vhostctl.services.composer import RenderedFragment
from vhostctl.services.fragments import find_fragments, list_vhosts, write_fragments
from vhostctl_common import VhostctlConfig, VhostSpec


def _fragment(path: Path, content: bytes = b"server {\n", **kwargs) -> RenderedFragment:
    kwargs.setdefault("ensure", "present")
    kwargs.setdefault("notify", True)
    return RenderedFragment(kind="header", path=path, content=content, **kwargs)


class TestWriteFragments:
    def test_creates_file_and_parents(self, tmp_path: Path):
        path = tmp_path / "nginx.d" / "site-001"
        result = write_fragments([_fragment(path)])
        assert path.read_bytes() == b"server {\n"
        assert result.changed == [path]
        assert result.notify is True

    def test_mode_is_0644(self, tmp_path: Path):
        path = tmp_path / "site-001"
        write_fragments([_fragment(path)])
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_unchanged_content_is_noop(self, tmp_path: Path):
        path = tmp_path / "site-001"
        write_fragments([_fragment(path)])
        result = write_fragments([_fragment(path)])
        assert result.changed == []
        assert result.notify is False

    def test_mode_drift_is_a_change(self, tmp_path: Path):
        path = tmp_path / "site-001"
        write_fragments([_fragment(path)])
        path.chmod(0o600)
        result = write_fragments([_fragment(path)])
        assert result.changed == [path]
        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    def test_content_change_rewrites(self, tmp_path: Path):
        path = tmp_path / "site-001"
        write_fragments([_fragment(path)])
        write_fragments([_fragment(path, b"server { # new\n")])
        assert path.read_bytes() == b"server { # new\n"
        assert not any(p.name.endswith(".tmp") for p in tmp_path.iterdir())

    def test_removes_absent(self, tmp_path: Path):
        path = tmp_path / "site-001"
        path.write_text("old")
        result = write_fragments([_fragment(path, b"", ensure="absent")])
        assert not path.exists()
        assert result.changed == [path]
        assert result.notify is True

    def test_absent_and_missing_is_noop(self, tmp_path: Path):
        result = write_fragments([_fragment(tmp_path / "gone-001", b"", ensure="absent")])
        assert result.changed == []

    def test_non_notifying_change(self, tmp_path: Path):
        result = write_fragments([_fragment(tmp_path / "site-699", b"}\n", notify=False)])
        assert len(result.changed) == 1
        assert result.notify is False

    def test_io_failure_names_path(self, tmp_path: Path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        path = blocker / "site-001"
        with pytest.raises(FragmentWriteError) as excinfo:
            write_fragments([_fragment(path)])
        assert excinfo.value.path == path
        assert str(path) in str(excinfo.value)

    def test_failed_write_leaves_no_temp_file(self, tmp_path: Path):
        path = tmp_path / "nginx.d" / "site-001"
        with patch("vhostctl.services.fragments.os.replace", side_effect=PermissionError(13, "Permission denied")):
            with pytest.raises(FragmentWriteError):
                write_fragments([_fragment(path)])
        assert list(path.parent.iterdir()) == []


class TestFindFragments:
    def test_stage_order(self, tmp_config: VhostctlConfig, ssl_spec: VhostSpec):
        write_fragments(composer.compose(ssl_spec, tmp_config))
        found = [p.name for p in find_fragments(tmp_config.fragment_dir, "test2.local")]
        assert found == [
            "test2.local-001",
            "test2.local-500-test2.local-default",
            "test2.local-699",
            "test2.local-700-ssl",
            "test2.local-800-test2.local-default-ssl",
            "test2.local-999-ssl",
        ]

    def test_prefix_does_not_match_other_vhosts(self, tmp_path: Path):
        for name in ("foo-001", "foo-bar-001", "foo-bar-699", "foo-699"):
            (tmp_path / name).write_text("")
        assert [p.name for p in find_fragments(tmp_path, "foo")] == ["foo-001", "foo-699"]

    def test_numeric_suffix_vhost_not_matched(self, tmp_config: VhostctlConfig):
        for name in ("shop", "shop-100"):
            write_fragments(composer.compose(VhostSpec(name=name, www_root="/srv"), tmp_config))

        shop = [p.name for p in find_fragments(tmp_config.fragment_dir, "shop")]
        assert shop == ["shop-001", "shop-500-shop-default", "shop-699"]
        shop_100 = [p.name for p in find_fragments(tmp_config.fragment_dir, "shop-100")]
        assert shop_100 == ["shop-100-001", "shop-100-500-shop-100-default", "shop-100-699"]

    def test_ignores_temp_files(self, tmp_path: Path):
        for name in ("foo-001", ".foo-001.tmp", "foo-700-ssl"):
            (tmp_path / name).write_text("")
        assert [p.name for p in find_fragments(tmp_path, "foo")] == ["foo-001", "foo-700-ssl"]

    def test_missing_dir(self, tmp_path: Path):
        assert find_fragments(tmp_path / "nope", "foo") == []

    def test_list_vhosts(self, tmp_path: Path):
        for name in ("a-001", "a-699", "b-700-ssl", "b-999-ssl", "c-500-c-default"):
            (tmp_path / name).write_text("")
        assert list_vhosts(tmp_path) == ["a", "b"]
