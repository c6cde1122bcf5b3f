import pytest

from pickchat.keys import ConfigError, Keys, load_keys, parse_keys


KEYS_CONF = '''
ANTHROPIC_API_KEY="sk-ant-123"

OPENAI_API_KEY='sk-456'
# comment lines are ignored
SOMETHING_ELSE="nope"
'''


def test_parse_keys():
    keys = parse_keys(KEYS_CONF)
    assert keys == Keys(anthropic="sk-ant-123", openai="sk-456", mistral="")
    assert keys.available() == ["anthropic", "openai"]


def test_unquoted_values():
    assert parse_keys("MISTRAL_API_KEY=abc\n").mistral == "abc"


def test_load_keys_from_file(tmp_path):
    path = tmp_path / "keys.conf"
    path.write_text(KEYS_CONF)
    keys = load_keys(str(path), environ={})
    assert keys.anthropic == "sk-ant-123"
    assert keys.mistral == ""


def test_env_fills_missing_keys(tmp_path):
    path = tmp_path / "keys.conf"
    path.write_text('OPENAI_API_KEY="from-file"\n')
    keys = load_keys(str(path), environ={"OPENAI_API_KEY": "from-env", "MISTRAL_API_KEY": "m"})
    assert keys.openai == "from-file"
    assert keys.mistral == "m"


def test_keys_path_from_env(tmp_path):
    path = tmp_path / "other.conf"
    path.write_text('MISTRAL_API_KEY="m"\n')
    assert load_keys(environ={"PICKCHAT_KEYS": str(path)}).mistral == "m"


def test_missing_file_gives_empty_keys(tmp_path):
    keys = load_keys(str(tmp_path / "nope.conf"), environ={})
    assert keys == Keys()
    with pytest.raises(ConfigError):
        keys.require()


def test_one_key_is_enough():
    keys = Keys(mistral="m")
    assert keys.require() is keys
