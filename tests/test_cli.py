"""Tests for the prebuilt-locator command line."""

import json
from unittest.mock import patch

import pytest

from args import parse_args
from constants import Constants, ExitCodes
from locator import build_options, main


@pytest.fixture
def manifest_file(tmp_path, package_json):
    path = tmp_path / "package.json"
    path.write_text(json.dumps(package_json), encoding="utf-8")
    return path


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv(Constants.ENV_S3_HOST, raising=False)
    monkeypatch.delenv(Constants.ENV_CONFIG, raising=False)
    monkeypatch.delenv(Constants.ENV_LOG_LEVEL, raising=False)
    monkeypatch.chdir(tmp_path)


class TestArgParsing:
    """Test CLI argument parsing."""

    def test_defaults(self):
        ns = parse_args([])
        assert ns.commands == []
        assert ns.PACKAGE_JSON == "package.json"
        assert ns.DEBUG is False
        assert ns.NAPI_BUILD_VERSION is None

    def test_commands_and_targets(self):
        ns = parse_args([
            "publish", "--target", "20.5.0", "--runtime", "electron",
            "--target_platform", "win32", "--target_arch", "ia32",
            "--napi_build_version", "6", "--loglevel", "debug",
        ])
        assert ns.commands == ["publish"]
        assert ns.TARGET == "20.5.0"
        assert ns.RUNTIME == "electron"
        assert ns.NAPI_BUILD_VERSION == 6
        assert ns.LOG_LEVEL == "DEBUG"

    def test_invalid_runtime_exits(self):
        with pytest.raises(SystemExit):
            parse_args(["--runtime", "deno"])

    def test_build_options(self):
        options = build_options(parse_args(["install", "--debug", "--s3_host", "staging",
                                            "--build-latest-napi-version-only"]))
        assert options.debug is True
        assert options.s3_host == "staging"
        assert options.argv_remain == ["install"]
        assert options.build_latest_napi_version_only is True


class TestMain:
    """Test the end-to-end command."""

    def test_prints_descriptor(self, manifest_file, node_env, clean_env, capsys):
        with patch("locator.detect_environment", return_value=node_env):
            code = main(["-p", str(manifest_file), "--target", "20.5.0"])
        assert code == ExitCodes.SUCCESS.value
        out = json.loads(capsys.readouterr().out)
        assert out["node_abi"] == "node-v115"
        assert out["package_name"] == "node_sqlite3-v5.1.6-node-v115-linux-x64.tar.gz"

    def test_missing_package_json(self, tmp_path, clean_env):
        assert main(["-p", str(tmp_path / "nope.json")]) == ExitCodes.FILE_ERROR.value

    def test_malformed_package_json(self, tmp_path, clean_env):
        path = tmp_path / "package.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert main(["-p", str(path)]) == ExitCodes.FILE_ERROR.value

    def test_config_error(self, tmp_path, node_env, clean_env):
        path = tmp_path / "package.json"
        path.write_text(json.dumps({"name": "x", "version": "1.0.0"}), encoding="utf-8")
        with patch("locator.detect_environment", return_value=node_env):
            assert main(["-p", str(path)]) == ExitCodes.CONFIG_ERROR.value

    def test_abi_error(self, manifest_file, node_env, clean_env):
        with patch("locator.detect_environment", return_value=node_env):
            assert main(["-p", str(manifest_file), "--target", "99.0.0"]) == ExitCodes.ABI_ERROR.value

    def test_config_file_applied(self, manifest_file, node_env, clean_env, tmp_path, capsys):
        cfg = tmp_path / "custom.yml"
        cfg.write_text("stage_dir: dist/prebuilt\nnode_binary: /opt/node\n", encoding="utf-8")
        with patch("locator.detect_environment", return_value=node_env) as detect:
            code = main(["-p", str(manifest_file), "-c", str(cfg)])
        assert code == ExitCodes.SUCCESS.value
        detect.assert_called_once_with(None)
        out = json.loads(capsys.readouterr().out)
        assert out["staged_tarball"].startswith("dist")
