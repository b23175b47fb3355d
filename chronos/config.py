from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from typing import Dict, Optional

import yaml

from .errors import ConfigError
from .layout import MIN_FULL_LAYOUT_HEIGHT

CONFIG_DIR = os.path.expanduser("~/.chronos")
DEFAULT_CONFIG_PATH = os.path.join(CONFIG_DIR, "config.yml")
DEFAULT_ENV_PATH = os.path.join(CONFIG_DIR, ".env")
DEFAULT_LOG_PATH = os.path.join(CONFIG_DIR, "chronos.log")

CLOCKIFY_API = "https://api.clockify.me/api/v1"


# -----------------------------
# Config models
# -----------------------------
@dataclass
class ClockifyConfig:
    api_key: str = ""
    base_url: str = ""
    user_url: str = ""
    workspace_id: str = ""
    user_id: str = ""
    default_project: str = ""


@dataclass
class LinearConfig:
    api_key: str = ""
    base_url: str = ""


@dataclass
class GitlabConfig:
    api_key: str = ""
    base_url: str = ""
    user_id: str = ""


@dataclass
class Config:
    clockify: ClockifyConfig = field(default_factory=ClockifyConfig)
    linear: LinearConfig = field(default_factory=LinearConfig)
    gitlab: GitlabConfig = field(default_factory=GitlabConfig)
    min_full_height: int = MIN_FULL_LAYOUT_HEIGHT
    timeout: float = 30.0

    def require_clockify(self, *, user_id: bool = False) -> None:
        missing = []
        if not self.clockify.api_key:
            missing.append("CLOCKIFY_API_KEY")
        if not self.clockify.base_url:
            missing.append("CLOCKIFY_BASE_URL (or CLOCKIFY_WORKSPACE)")
        if user_id and not self.clockify.user_id:
            missing.append("CLOCKIFY_USER_ID")
        if missing:
            raise ConfigError("Missing configuration: " + ", ".join(missing))


# env var -> (section, attribute)
ENV_KEYS: Dict[str, tuple] = {
    "CLOCKIFY_API_KEY": ("clockify", "api_key"),
    "CLOCKIFY_BASE_URL": ("clockify", "base_url"),
    "CLOCKIFY_USER_URL": ("clockify", "user_url"),
    "CLOCKIFY_WORKSPACE": ("clockify", "workspace_id"),
    "CLOCKIFY_USER_ID": ("clockify", "user_id"),
    "CLOCKIFY_DEFAULT_PROJECT": ("clockify", "default_project"),
    "LINEAR_API_KEY": ("linear", "api_key"),
    "LINEAR_BASE_URL": ("linear", "base_url"),
    "GITLAB_API_KEY": ("gitlab", "api_key"),
    "GITLAB_BASE_URL": ("gitlab", "base_url"),
    "GITLAB_USER_ID": ("gitlab", "user_id"),
}


def load_dotenv(path: str = DEFAULT_ENV_PATH) -> Dict[str, str]:
    """Read KEY=VALUE lines from ``path`` into os.environ without overriding set variables."""
    loaded: Dict[str, str] = {}
    if not path or not os.path.isfile(path):
        return loaded
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#') or '=' not in line:
                continue
            if line.startswith("export "):
                line = line[len("export "):]
            k, v = line.split('=', 1)
            k = k.strip()
            v = v.strip().strip('"').strip("'")
            if not k:
                continue
            os.environ.setdefault(k, v)
            loaded[k] = v
    return loaded


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Config: '{name}' must be a mapping")
    return value


def load_config(path: Optional[str] = DEFAULT_CONFIG_PATH, environ: Optional[Dict[str, str]] = None) -> Config:
    """Build the config from the optional YAML file, then apply environment overrides."""
    env = os.environ if environ is None else environ
    raw: dict = {}
    if path and os.path.isfile(path):
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Config: cannot parse {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Config: {path} must contain a mapping")

    cfg = Config()
    for name in ("clockify", "linear", "gitlab"):
        target = getattr(cfg, name)
        for key, value in _section(raw, name).items():
            if hasattr(target, key) and value is not None:
                setattr(target, key, str(value))
    ui = _section(raw, "ui")
    http = _section(raw, "http")
    try:
        cfg.min_full_height = int(ui.get("min_full_height", cfg.min_full_height))
        cfg.timeout = float(http.get("timeout", cfg.timeout))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Config: invalid number: {exc}") from exc

    for var, (section, attr) in ENV_KEYS.items():
        value = env.get(var)
        if value:
            setattr(getattr(cfg, section), attr, value)

    ck = cfg.clockify
    if not ck.base_url and ck.workspace_id:
        ck.base_url = f"{CLOCKIFY_API}/workspaces/{ck.workspace_id}/"
    if not ck.user_url:
        ck.user_url = f"{CLOCKIFY_API}/user"
    return cfg


# -----------------------------
# Logging
# -----------------------------
def configure_logging(log_level: str = 'ERROR', log_path: str = DEFAULT_LOG_PATH) -> logging.Logger:
    """Attach a rotating file handler to the 'chronos' logger at ``log_level``."""
    logger = logging.getLogger('chronos')
    # Reset handlers so --log-level reliably controls file output.
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    directory = os.path.dirname(log_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fh = RotatingFileHandler(log_path, maxBytes=2000000, backupCount=2, encoding='utf-8')
    lvl = getattr(logging, str(log_level).upper(), None)
    fh.setLevel(lvl if isinstance(lvl, int) else logging.ERROR)
    fh.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(message)s'))
    logger.addHandler(fh)
    return logger
