"""路由配置与运行期辅助函数。"""

import json
import logging

from router.config import RouterConfig
from router.runtime import default_config_path, load_config, make_result_logger


class TestRouterConfig:

    def test_defaults(self):
        config = RouterConfig.from_dict(None)

        assert config.forward_errors is True
        assert config.rebuild_on_start is True
        assert config.shutdown_timeout == 5.0
        assert config.log_level == "INFO"

    def test_from_dict_normalises_values(self):
        config = RouterConfig.from_dict({"forward_errors": 0, "shutdown_timeout": -3, "log_level": "debug"})

        assert config.forward_errors is False
        assert config.shutdown_timeout == 0.0
        assert config.log_level == "DEBUG"

    def test_merged_returns_copy(self):
        base = RouterConfig()
        merged = base.merged({"forward_errors": False})

        assert merged.forward_errors is False
        assert base.forward_errors is True
        assert base.merged({}) is base

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"rebuild_on_start": False}), encoding="utf-8")

        assert RouterConfig.from_file(path).rebuild_on_start is False

    def test_missing_or_invalid_file_falls_back_to_defaults(self, tmp_path, caplog):
        broken = tmp_path / "broken.json"
        broken.write_text("{not json", encoding="utf-8")
        listed = tmp_path / "list.json"
        listed.write_text("[]", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="router.config"):
            assert RouterConfig.from_file(tmp_path / "missing.json") == RouterConfig()
            assert RouterConfig.from_file(broken) == RouterConfig()
            assert RouterConfig.from_file(listed) == RouterConfig()

        assert len(caplog.records) == 3


class TestRuntime:

    def test_bundled_config_loads(self):
        config, root = load_config()

        assert default_config_path().name == "config.json"
        assert root == default_config_path().resolve().parent
        assert config == RouterConfig()

    def test_result_logger(self, caplog):
        handler = make_result_logger("router.result.test")

        with caplog.at_level(logging.INFO, logger="router.result.test"):
            handler("c1.result", {"data": {"ok": True}})
            handler("c1.result", {"data": None, "errors": [{"message": "x"}]})

        assert [record.levelno for record in caplog.records] == [logging.INFO, logging.WARNING]
