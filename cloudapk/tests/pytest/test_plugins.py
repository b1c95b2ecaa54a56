"""Tests for plugin signature loading, source scanning, and detection."""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudapk.core.errors import ConfigurationError
from cloudapk.project.plugins import detect, iter_source_files, load_signatures, scan_sources


@pytest.mark.evergreen
class TestLoadSignatures:
    """The bundled YAML table and project overrides."""

    def test_bundled_table(self) -> None:
        signatures = load_signatures()
        assert signatures["navigator.vibrate"] == "cordova-plugin-vibration"
        assert signatures["StatusBar"] == "cordova-plugin-statusbar"
        assert signatures["navigator.camera"] == "cordova-plugin-camera"

    def test_bundled_table_is_a_copy(self) -> None:
        load_signatures()["navigator.vibrate"] = "mutated"
        assert load_signatures()["navigator.vibrate"] == "cordova-plugin-vibration"

    def test_override_file(self, tmp_path: Path) -> None:
        path = tmp_path / "signatures.yaml"
        path.write_text("signatures:\n  cordova.plugins.barcodeScanner: phonegap-plugin-barcodescanner\n")
        assert load_signatures(path) == {
            "cordova.plugins.barcodeScanner": "phonegap-plugin-barcodescanner",
        }

    def test_malformed_override_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "signatures.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_signatures(path)

    def test_missing_override_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            load_signatures(tmp_path / "nope.yaml")


@pytest.mark.evergreen
class TestDetect:
    """detect is a substring-presence test with set semantics."""

    SIGNATURES = {
        "navigator.vibrate": "cordova-plugin-vibration",
        "StatusBar": "cordova-plugin-statusbar",
        "navigator.camera": "cordova-plugin-camera",
    }

    def test_single_match(self) -> None:
        assert detect("navigator.vibrate(200);", self.SIGNATURES) == {"cordova-plugin-vibration"}

    def test_repeated_token_counts_once(self) -> None:
        text = "navigator.vibrate(1); navigator.vibrate(2);"
        assert detect(text, self.SIGNATURES) == {"cordova-plugin-vibration"}

    def test_multiple_matches(self) -> None:
        text = "StatusBar.hide(); navigator.camera.getPicture();"
        assert detect(text, self.SIGNATURES) == {"cordova-plugin-statusbar", "cordova-plugin-camera"}

    def test_comment_is_a_match(self) -> None:
        """False positives from comments are accepted."""
        assert detect("// TODO use navigator.camera", self.SIGNATURES) == {"cordova-plugin-camera"}

    def test_no_match(self) -> None:
        assert detect("navigator['vibrate'](1)", self.SIGNATURES) == set()

    def test_two_tokens_same_plugin(self) -> None:
        signatures = {"a.b": "plugin-x", "c.d": "plugin-x"}
        assert detect("a.b c.d", signatures) == {"plugin-x"}


@pytest.mark.evergreen
class TestScanSources:
    """scan_sources reads js and html files recursively, in sorted order."""

    def test_recursive_js_and_html(self, tmp_path: Path) -> None:
        www = tmp_path / "www"
        (www / "js" / "lib").mkdir(parents=True)
        (www / "index.html").write_text("<html>StatusBar</html>")
        (www / "js" / "lib" / "deep.js").write_text("navigator.vibrate(1)")
        (www / "css").mkdir()
        (www / "css" / "app.css").write_text("navigator.camera")

        text = scan_sources(www)
        assert "StatusBar" in text
        assert "navigator.vibrate" in text
        assert "navigator.camera" not in text

    def test_sorted_files(self, tmp_path: Path) -> None:
        www = tmp_path / "www"
        www.mkdir()
        (www / "b.js").write_text("b")
        (www / "a.js").write_text("a")
        assert [p.name for p in iter_source_files(www)] == ["a.js", "b.js"]

    def test_missing_dir_is_empty(self, tmp_path: Path) -> None:
        assert scan_sources(tmp_path / "www") == ""
