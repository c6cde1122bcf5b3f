import logging
import os
import sys

from .backend import make_backend
from .hooks import load_plugins
from .keys import ConfigError, load_keys
from .turns import TurnController
from .ui import run


logger = logging.getLogger("pickchat")


def configure_logging(environ=None):
    '''
    The UI owns the terminal, so logs only go to a file:

        PICKCHAT_LOG=pickchat.log PICKCHAT_LOG_LEVEL=DEBUG pickchat
    '''
    environ = os.environ if environ is None else environ
    path = environ.get("PICKCHAT_LOG")
    if not path:
        return None
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(environ.get("PICKCHAT_LOG_LEVEL", "INFO").upper())
    return handler


def main() -> int:
    configure_logging()
    load_plugins()
    try:
        keys = load_keys().require()
    except ConfigError as e:
        print(f"pickchat: {e}", file=sys.stderr)
        return 1

    run(TurnController(make_backend(keys)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
