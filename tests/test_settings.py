import json

from intbasic.settings import DEFAULT_ESCAPES, Settings, load_settings


def test_defaults():
    settings = Settings()
    assert settings.case_sensitive is False
    assert settings.warn_undeclared_arrays is True
    assert settings.warn_undefined_variables is True
    assert settings.warn_length == 150
    assert settings.escapes == DEFAULT_ESCAPES


def test_from_dict_fills_missing_keys():
    settings = Settings.from_dict({'case': {'caseSensitive': True}, 'warn': {'length': 80}})
    assert settings.case_sensitive is True
    assert settings.warn_length == 80
    assert settings.warn_undefined_variables is True
    assert settings.escapes == (138, 141)


def test_dict_layout_survives_reload():
    settings = Settings(warn_undeclared_arrays=False, escapes=[141])
    assert Settings.from_dict(settings.to_dict()).to_dict() == settings.to_dict()


def test_load_settings(tmp_path):
    path = tmp_path / 'settings.json'
    path.write_text(json.dumps({'detokenizer': {'escapes': [132]}, 'warn': {'undefinedVariables': False}}))
    settings = load_settings(str(path))
    assert settings.escapes == (132,)
    assert settings.warn_undefined_variables is False
