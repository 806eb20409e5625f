"""Config 加载测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from e2erun.core.config import Config
from e2erun.core.exceptions import ConfigError


class TestConfig:
    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "nope.yml"))
        assert cfg.report_file == "junit_runner.xml"
        assert cfg.build_commands["quick"] == "make quick-release"

    def test_load_and_unknown_keys_go_to_extra(self, tmp_path: Path) -> None:
        p = tmp_path / "e2erun.yml"
        p.write_text(
            "kops_cluster: e2e.k8s.local\nkops_nodes: '6'\nflavor: large\n",
            encoding="utf-8",
        )
        cfg = Config.from_file(str(p))
        assert cfg.kops_cluster == "e2e.k8s.local"
        assert cfg.kops_nodes == 6
        assert cfg.extra == {"flavor": "large"}

    def test_build_commands_merged_with_defaults(self) -> None:
        cfg = Config.from_dict({"build_commands": {"bazel": "bazel build //:all"}})
        assert cfg.build_commands["bazel"] == "bazel build //:all"
        assert cfg.build_commands["make"] == "make release"

    def test_build_commands_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError):
            Config.from_dict({"build_commands": ["make"]})

    def test_bad_int_rejected(self) -> None:
        with pytest.raises(ConfigError, match="kops_nodes"):
            Config.from_dict({"kops_nodes": "many"})

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        p = tmp_path / "bad.yml"
        p.write_text("a: [1, 2\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="配置文件无效"):
            Config.from_file(str(p))

    def test_top_level_list_rejected(self, tmp_path: Path) -> None:
        p = tmp_path / "list.yml"
        p.write_text("- kops_cluster: a\n", encoding="utf-8")
        with pytest.raises(ConfigError, match="映射"):
            Config.from_file(str(p))

    def test_to_dict_roundtrip_fields(self) -> None:
        d = Config(kops_zones="eu-west-1a").to_dict()
        assert d["kops_zones"] == "eu-west-1a"
        assert "extra" in d
