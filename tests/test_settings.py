"""Tests for TOML settings persistence."""
from __future__ import annotations

from pathlib import Path

from settings import AppSettings, SettingsManager


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path):
        manager = SettingsManager(settings_dir=tmp_path)
        assert manager.settings == AppSettings()
        assert manager.settings.scale.value == 1.0
        assert manager.settings.canvas.edge_padding == 0.002
        assert manager.settings.document.default_switch_key == "Key_QuoteLeft"

    def test_last_dir_defaults_to_home(self, tmp_path):
        assert SettingsManager(settings_dir=tmp_path).get_last_dir() == Path.home()


class TestPersistence:
    def test_save_and_reload(self, tmp_path):
        manager = SettingsManager(settings_dir=tmp_path / "cfg")
        manager.settings.scale.value = 1.4
        manager.settings.nodes.colors.click = "#112233"
        manager.settings.document.last_dir = str(tmp_path)
        manager.save()
        assert manager.get_settings_path().exists()

        reloaded = SettingsManager(settings_dir=tmp_path / "cfg")
        assert reloaded.settings.scale.value == 1.4
        assert reloaded.settings.nodes.colors.click == "#112233"
        assert reloaded.get_last_dir() == tmp_path

    def test_partial_file_keeps_other_defaults(self, tmp_path):
        (tmp_path / "settings.toml").write_text("[canvas]\nwidth = 1024\n", encoding="utf-8")
        settings = SettingsManager(settings_dir=tmp_path).settings
        assert settings.canvas.width == 1024
        assert settings.canvas.height == 600
        assert settings.canvas.zorder.step == 10

    def test_wrong_types_keep_defaults(self, tmp_path):
        (tmp_path / "settings.toml").write_text(
            '[scale]\nvalue = "big"\nstep = true\n[canvas]\nprecision = 3.0\n', encoding="utf-8")
        settings = SettingsManager(settings_dir=tmp_path).settings
        assert settings.scale.value == 1.0
        assert settings.scale.step == 0.05
        assert settings.canvas.precision == 3
        assert isinstance(settings.canvas.precision, int)

    def test_unknown_keys_ignored(self, tmp_path):
        (tmp_path / "settings.toml").write_text("[scale]\nflavor = 'x'\n[extra]\na = 1\n", encoding="utf-8")
        assert SettingsManager(settings_dir=tmp_path).settings == AppSettings()

    def test_corrupt_file_gives_defaults(self, tmp_path, caplog):
        (tmp_path / "settings.toml").write_text("[scale\nvalue = ", encoding="utf-8")
        manager = SettingsManager(settings_dir=tmp_path)
        assert manager.settings == AppSettings()
        assert "Ignoring unreadable settings file" in caplog.text

    def test_to_toml_has_sections(self, tmp_path):
        text = SettingsManager(settings_dir=tmp_path).to_toml()
        for section in ("[scale]", "[canvas]", "[canvas.zorder]", "[nodes.colors]", "[document]"):
            assert section in text
