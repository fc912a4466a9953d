import json
import os

HOME = os.path.expanduser("~")
XDG_CONFIG_HOME = os.environ.get("XDG_CONFIG_HOME")
XDG_DATA_HOME = os.environ.get("XDG_DATA_HOME")
CONFIG_HOME = XDG_CONFIG_HOME if XDG_CONFIG_HOME else os.path.join(HOME, ".config")
DATA_HOME = XDG_DATA_HOME if XDG_DATA_HOME else os.path.join(HOME, ".local", "share")
CONFIG_DIR = os.path.join(CONFIG_HOME, "lighttasksheet")
CONFIG_JSON = os.path.join(CONFIG_DIR, "config.json")
DATA_DIR = os.path.join(DATA_HOME, "lighttasksheet", "data")

# default settings
UNDO_LIMIT_DEFAULT = 20
DEFAULT_USER_DEFAULT = os.environ.get("USER") or "admin"
EXPORT_DIR_DEFAULT = "."


def ensure_config_dirs(data_dir=None):
    os.makedirs(CONFIG_DIR, exist_ok=True)
    os.makedirs(data_dir or DATA_DIR, exist_ok=True)


def load_config():
    cfg = {
        "undo_limit": UNDO_LIMIT_DEFAULT,
        "data_dir": DATA_DIR,
        "default_user": DEFAULT_USER_DEFAULT,
        "export_dir": EXPORT_DIR_DEFAULT,
    }

    if not os.path.exists(CONFIG_JSON):
        return cfg
    try:
        with open(CONFIG_JSON, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        return cfg
    if not isinstance(data, dict):
        return cfg

    limit = data.get("undo_limit")
    if isinstance(limit, int) and not isinstance(limit, bool) and limit >= 1:
        cfg["undo_limit"] = limit
    for key in ("data_dir", "export_dir"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            cfg[key] = os.path.expanduser(value.strip())
    user = data.get("default_user")
    if isinstance(user, str) and user.strip():
        cfg["default_user"] = user.strip()
    return cfg
