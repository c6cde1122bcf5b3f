import logging
import os
from dataclasses import dataclass, fields


logger = logging.getLogger("pickchat.keys")

DEFAULT_KEYS_FILE = "keys.conf"

# key-file entry -> Keys attribute
KEY_NAMES = {
    "ANTHROPIC_API_KEY": "anthropic",
    "OPENAI_API_KEY": "openai",
    "MISTRAL_API_KEY": "mistral",
}


class ConfigError(Exception):
    """No usable credentials; the app can't start."""


@dataclass
class Keys:
    anthropic: str = ""
    openai: str = ""
    mistral: str = ""

    def available(self) -> list:
        return [f.name for f in fields(self) if getattr(self, f.name)]

    def require(self) -> 'Keys':
        if not self.available():
            raise ConfigError("Please add your keys to keys.conf.")
        return self


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_keys(text: str) -> Keys:
    '''
    Parses lines like:

        ANTHROPIC_API_KEY="sk-ant-..."
        OPENAI_API_KEY="sk-..."

    Blank and unknown lines are skipped.
    '''
    keys = Keys()
    for line in text.splitlines():
        line = line.strip()
        if not line or "=" not in line: continue
        name, value = line.split("=", 1)
        attr = KEY_NAMES.get(name.strip())
        if attr:
            setattr(keys, attr, _unquote(value))
    return keys


def load_keys(path=None, environ=None) -> Keys:
    """Reads the key file, filling gaps from same-named environment variables."""
    environ = os.environ if environ is None else environ
    path = path or environ.get("PICKCHAT_KEYS") or DEFAULT_KEYS_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            keys = parse_keys(f.read())
    except OSError:
        logger.info("no key file at %s", path)
        keys = Keys()

    for env_name, attr in KEY_NAMES.items():
        if not getattr(keys, attr) and environ.get(env_name):
            setattr(keys, attr, environ[env_name])
    logger.info("providers with keys: %s", ", ".join(keys.available()) or "none")
    return keys
