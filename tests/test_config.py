"""Tests for generation configuration."""

import json

from orogen import config as config_module
from orogen.config import GenerationConfig


class TestResolveTarget:
    def test_explicit_target_wins(self):
        config = GenerationConfig(target="xenomai")
        assert config.resolve_target({"OROCOS_TARGET": "macosx"}) == "xenomai"

    def test_environment(self):
        assert GenerationConfig().resolve_target({"OROCOS_TARGET": "macosx"}) == "macosx"

    def test_empty_environment_value_is_ignored(self):
        assert GenerationConfig().resolve_target({"OROCOS_TARGET": ""}) == "gnulinux"

    def test_default(self):
        assert GenerationConfig().resolve_target({}) == "gnulinux"

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("OROCOS_TARGET", "xenomai")
        assert GenerationConfig().resolve_target() == "xenomai"


class TestLoadSave:
    def test_defaults_without_file(self):
        config = GenerationConfig.load()
        assert config.extended_states is False
        assert config.transports == []
        assert config.automatic_area == ".orogen"

    def test_save_and_load(self):
        config = GenerationConfig(transports=["corba"], extended_states=True, target="xenomai")
        config.save()
        saved = json.loads(config_module.CONFIG_FILE.read_text())
        assert "target" not in saved
        loaded = GenerationConfig.load()
        assert loaded.transports == ["corba"]
        assert loaded.extended_states is True
        assert loaded.target is None

    def test_environment_overrides_file(self, monkeypatch):
        GenerationConfig(transports=["corba"]).save()
        monkeypatch.setenv("OROGEN_TRANSPORTS", "mqueue, typelib")
        monkeypatch.setenv("OROGEN_EXTENDED_STATES", "yes")
        config = GenerationConfig.load()
        assert config.transports == ["mqueue", "typelib"]
        assert config.extended_states is True

    def test_invalid_boolean_is_ignored(self, monkeypatch):
        monkeypatch.setenv("OROGEN_EXTENDED_STATES", "maybe")
        assert GenerationConfig.load().extended_states is False

    def test_corrupt_file_falls_back_to_defaults(self):
        config_module.CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
        config_module.CONFIG_FILE.write_text("{not json")
        assert GenerationConfig.load().transports == []
