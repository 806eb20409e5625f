"""YAML 读写工具测试"""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from e2erun.utils import yaml_io
from e2erun.utils.yaml_io import atomic_write, dump_yaml, load_yaml, save_yaml


class TestLoadYaml:
    def test_missing_and_empty(self, tmp_path: Path) -> None:
        assert load_yaml(tmp_path / "none.yml") == {}
        (tmp_path / "empty.yml").write_text("", encoding="utf-8")
        assert load_yaml(tmp_path / "empty.yml") == {}

    def test_non_mapping_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValueError, match="list"):
            load_yaml(p)

    def test_size_guard(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        p = tmp_path / "big.yml"
        p.write_text("a: 1\n", encoding="utf-8")
        monkeypatch.setattr(yaml_io, "MAX_YAML_SIZE", 2)
        with pytest.raises(ValueError, match="过大"):
            load_yaml(p)

    def test_syntax_error(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("a: [1\n", encoding="utf-8")
        with pytest.raises(yaml.YAMLError):
            load_yaml(p)


class TestSaveYaml:
    def test_keeps_key_order_and_unicode(self, tmp_path: Path) -> None:
        p = save_yaml(tmp_path / "sub" / "state.yml", {"version": "v1.6.0", "备注": "夜间"})
        assert list(load_yaml(p)) == ["version", "备注"]
        assert "夜间" in p.read_text(encoding="utf-8")
        assert not list(p.parent.glob("*.tmp"))

    def test_dump_is_block_style(self) -> None:
        assert dump_yaml({"a": [1, 2]}) == "a:\n- 1\n- 2\n"

    def test_failed_write_leaves_no_temp(self, tmp_path: Path,
                                         monkeypatch: pytest.MonkeyPatch) -> None:
        target = tmp_path / "metadata.json"
        target.write_text("old", encoding="utf-8")

        def boom(src, dst):
            raise OSError("replace failed")

        monkeypatch.setattr(yaml_io.os, "replace", boom)
        with pytest.raises(OSError):
            atomic_write(target, "new")
        assert target.read_text(encoding="utf-8") == "old"
        assert [p.name for p in tmp_path.iterdir()] == ["metadata.json"]
