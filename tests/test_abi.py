"""Tests for ABI tag computation."""

import logging

import pytest

from versioning.abi import find_compatible_target, get_node_abi, get_runtime_abi
from versioning.models import AbiError, RuntimeEnvironment, RuntimeIdentity


class TestElectronAndNodeWebkit:
    """Test runtimes whose tag comes straight from the target version."""

    def test_electron_drops_patch(self):
        assert get_runtime_abi("electron", "13.1.7") == "electron-v13.1"

    def test_electron_uses_live_version(self):
        env = RuntimeEnvironment(versions={"node": "18.18.2", "electron": "28.2.0"})
        assert get_runtime_abi(RuntimeIdentity.ELECTRON, None, env) == "electron-v28.2"

    def test_electron_requires_target(self):
        with pytest.raises(AbiError, match="electron"):
            get_runtime_abi("electron", None, RuntimeEnvironment())

    def test_electron_rejects_invalid_version(self):
        with pytest.raises(AbiError):
            get_runtime_abi("electron", "13.1")

    def test_node_webkit_verbatim(self):
        assert get_runtime_abi("node-webkit", "0.64.0") == "node-webkit-v0.64.0"

    def test_node_webkit_uses_live_version(self):
        env = RuntimeEnvironment(versions={"node-webkit": "0.80.0"})
        assert get_runtime_abi("node-webkit", None, env) == "node-webkit-v0.80.0"

    def test_node_webkit_requires_target(self):
        with pytest.raises(AbiError, match="node-webkit"):
            get_runtime_abi("node-webkit")

    def test_unknown_runtime(self):
        with pytest.raises(AbiError, match="Unknown Runtime"):
            get_runtime_abi("deno", "1.0.0")


class TestLiveNodeAbi:
    """Test tags derived from process.versions of a live node."""

    def test_modules_number(self, node_env):
        assert get_runtime_abi("node", None, node_env) == "node-v108"

    def test_odd_zero_series_uses_full_version(self):
        assert get_node_abi("node", {"node": "0.11.10", "modules": "13", "v8": "3.22.24"}) == "node-v0.11.10"

    def test_v8_fallback_without_modules(self):
        assert get_node_abi("node", {"node": "0.10.3", "v8": "3.14.5.8"}) == "v8-3.14"

    def test_missing_node_version(self):
        with pytest.raises(AbiError):
            get_node_abi("node", {})


class TestTargetNodeAbi:
    """Test explicit node targets against the crosswalk."""

    def test_exact_hit_bundled(self):
        assert get_runtime_abi("node", "18.17.0") == "node-v108"
        assert get_runtime_abi("node", "0.10.40") == "node-v11"

    def test_pre_abi_version_uses_v8(self):
        assert get_runtime_abi("node", "0.8.28") == "v8-3.11"

    def test_odd_series_target(self):
        assert get_runtime_abi("node", "0.11.16") == "node-v0.11.16"

    def test_iojs_falls_back_to_nearest_lower_release(self, small_crosswalk, caplog):
        with caplog.at_level(logging.WARNING, logger="versioning.abi"):
            assert get_runtime_abi("node", "1.8.6", crosswalk=small_crosswalk) == "node-v43"
        assert "1.8.6" in caplog.text
        assert "1.8.4" in caplog.text

    def test_iojs_crosses_minor_boundary(self, small_crosswalk):
        assert find_compatible_target("1.5.0", small_crosswalk) == "1.0.0"

    def test_iojs_without_lower_release_fails(self):
        from versioning.crosswalk import CrosswalkTable
        table = CrosswalkTable({"1.8.4": {"node_abi": 43, "v8": "4.1"}})
        with pytest.raises(AbiError, match="Unsupported target version"):
            get_runtime_abi("node", "1.0.0", crosswalk=table)

    def test_new_major_uses_first_release_of_major(self, small_crosswalk):
        assert get_runtime_abi("node", "4.0.0", crosswalk=small_crosswalk) == \
            get_runtime_abi("node", "4.1.0", crosswalk=small_crosswalk)
        assert find_compatible_target("4.9.3", small_crosswalk) == "4.1.0"

    def test_stable_zero_series_decrements_patch(self, small_crosswalk, caplog):
        with caplog.at_level(logging.WARNING, logger="versioning.abi"):
            assert get_runtime_abi("node", "0.10.33", crosswalk=small_crosswalk) == "node-v11"
        assert "0.10.30" in caplog.text

    def test_stable_zero_series_never_reaches_patch_zero(self):
        from versioning.crosswalk import CrosswalkTable
        table = CrosswalkTable({"0.10.0": {"node_abi": 11, "v8": "3.14"}})
        with pytest.raises(AbiError):
            get_runtime_abi("node", "0.10.5", crosswalk=table)

    def test_odd_zero_series_has_no_fallback(self, small_crosswalk):
        assert find_compatible_target("0.11.99", small_crosswalk) is None

    def test_unknown_major_fails(self, small_crosswalk):
        with pytest.raises(AbiError, match="Unsupported target version: 30.0.0"):
            get_runtime_abi("node", "30.0.0", crosswalk=small_crosswalk)

    @pytest.mark.parametrize("target", ["18.17", "18.x.0", "v18.17.0.1"])
    def test_malformed_target(self, target, small_crosswalk):
        with pytest.raises(AbiError, match="Unknown target version"):
            get_runtime_abi("node", target, crosswalk=small_crosswalk)

    def test_exact_hit_does_not_warn(self, small_crosswalk, caplog):
        with caplog.at_level(logging.WARNING, logger="versioning.abi"):
            get_runtime_abi("node", "4.2.0", crosswalk=small_crosswalk)
        assert caplog.text == ""
