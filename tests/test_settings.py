import json

from shadowledger import settings as settings_module
from shadowledger.settings import DEFAULT_SETTINGS, get_setting, load_settings, save_settings


def _clear_env(monkeypatch):
    for key in settings_module.ENV_OVERRIDES:
        monkeypatch.delenv(key, raising=False)


def test_missing_file_gives_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    assert load_settings(tmp_path / "settings.json") == DEFAULT_SETTINGS


def test_corrupt_file_gives_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "settings.json"
    path.write_text("{oops")
    assert load_settings(path) == DEFAULT_SETTINGS


def test_non_object_file_gives_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "settings.json"
    path.write_text("[1, 2, 3]")
    assert load_settings(path) == DEFAULT_SETTINGS


def test_partial_file_is_filled_from_defaults(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"starting_bp": 350}))
    loaded = load_settings(path)
    assert loaded["starting_bp"] == 350
    assert loaded["starting_karma"] == DEFAULT_SETTINGS["starting_karma"]


def test_environment_overrides(tmp_path, monkeypatch):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"database_url": "sqlite:///from_file.db"}))
    monkeypatch.setenv("SHADOWLEDGER_DB_URL", "sqlite:///from_env.db")
    monkeypatch.setenv("SHADOWLEDGER_DATA_DIR", str(tmp_path))
    loaded = load_settings(path)
    assert loaded["database_url"] == "sqlite:///from_env.db"
    assert loaded["data_dir"] == str(tmp_path)


def test_save_then_load(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    path = tmp_path / "settings.json"
    data = dict(DEFAULT_SETTINGS, ignore_rules=True, starting_bp=450)
    save_settings(data, path)
    assert load_settings(path) == data


def test_get_setting():
    assert get_setting("starting_bp", {"starting_bp": 300}) == 300
    assert get_setting("starting_karma", {}) == DEFAULT_SETTINGS["starting_karma"]
    assert get_setting("no_such_key", {}) is None
