import logging

import pytest

from checktree.config import ConfigManager
from checktree.core.exceptions import ConfigurationError
from checktree.logging_config import setup_logging


def test_packaged_tree_defaults(isolated_config):
    cfg = ConfigManager().get_tree_config()
    assert cfg["root_id"] == "$root$"
    assert cfg["multi_state"] is True
    assert cfg["show_root"] is True
    assert cfg["checked_attr"] == "checked"


def test_config_manager_is_a_singleton():
    assert ConfigManager() is ConfigManager()


def test_defaults_are_copied_to_user_dir(isolated_config):
    ConfigManager()
    assert (isolated_config / "tree.yml").exists()
    assert (isolated_config / "logging.yml").exists()


def test_user_overrides_are_merged(isolated_config):
    isolated_config.mkdir(parents=True)
    (isolated_config / "tree.yml").write_text("root_label: Everything\nmulti_state: false\n", encoding="utf-8")

    cfg = ConfigManager().get_tree_config()
    assert cfg["root_label"] == "Everything"
    assert cfg["multi_state"] is False
    assert cfg["root_id"] == "$root$"


def test_invalid_user_override_is_ignored(isolated_config, caplog):
    isolated_config.mkdir(parents=True)
    (isolated_config / "tree.yml").write_text("- just\n- a list\n", encoding="utf-8")

    cfg = ConfigManager().get_tree_config()
    assert cfg["root_label"] == "All items"
    assert "Could not parse user config" in caplog.text


def test_unknown_section_raises():
    with pytest.raises(ConfigurationError):
        ConfigManager().get("colors")
    assert ConfigManager().get("tree")["root_id"] == "$root$"


def test_setup_logging_writes_to_log_dir(isolated_config, monkeypatch):
    monkeypatch.setenv("CHECKTREE_DEBUG_MODULES", "checktree.core.models.forest_model")
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    try:
        setup_logging()
        assert (isolated_config.parent / "logs").is_dir()
        assert logging.getLogger("checktree.core.models.forest_model").level == logging.DEBUG
    finally:
        for handler in list(root.handlers):
            if handler not in saved_handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in saved_handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(saved_level)
        for name in ("checktree.core.models", "checktree.ui", "checktree.core.models.forest_model"):
            logger = logging.getLogger(name)
            logger.setLevel(logging.NOTSET)
            logger.handlers.clear()
