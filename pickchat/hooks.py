import glob
import logging
import os


logger = logging.getLogger("pickchat.hooks")

PLUGIN_DIR = "_pickchat"

OVERRIDES = {}
_OVERRIDDEN = set()


def overridable(fn):
    '''
    Marks a function that plugins may replace:

    @pickchat.override
    def make_backend(keys):
        return pickchat.MockBackend()
    '''
    OVERRIDES[fn.__name__] = fn
    def wrap_fn(*a, **ka):
        return OVERRIDES[fn.__name__](*a, **ka)
    wrap_fn.__name__ = fn.__name__
    wrap_fn.__doc__ = fn.__doc__
    return wrap_fn


def override(fn):
    name = fn.__name__
    if name not in OVERRIDES:
        raise RuntimeError(f"'{name}' not overridable")
    if name in _OVERRIDDEN:
        raise RuntimeError(f"'{name}' already overridden")
    _OVERRIDDEN.add(name)
    OVERRIDES[name] = fn
    return fn


def load_plugins(plugin_dir: str = PLUGIN_DIR) -> list:
    if not os.path.isdir(plugin_dir):
        return []
    loaded = []
    for path in sorted(glob.glob(os.path.join(plugin_dir, "*.py"))):
        filename = os.path.basename(path)
        # plugin files starting with `_` arent loaded.
        if filename.startswith("_"):
            continue
        with open(path, "r", encoding="utf-8") as f:
            exec(compile(f.read(), path, "exec"), {"__name__": "__plugin__", "__file__": path})
        logger.info("loaded plugin %s", path)
        loaded.append(path)
    return loaded
