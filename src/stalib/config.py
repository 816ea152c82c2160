from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .catalog import DEFAULT_SERVER_URL
from .clients import DEFAULT_TIMEOUT, Credentials


class ConfigError(RuntimeError):
    pass


@dataclass
class Server:
    name: str
    url: str = ""
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def credentials(self) -> Optional[Credentials]:
        if not (self.username or self.password):
            return None
        return Credentials(username=self.username or "", password=self.password or "")


@dataclass
class Config:
    version: int = 1
    default_server: Optional[str] = None
    servers: Dict[str, Server] = field(default_factory=dict)
    source_path: Optional[Path] = None

    def to_json(self) -> str:
        def _default(o: Any):
            if isinstance(o, Path):
                return str(o)
            if hasattr(o, "__dict__"):
                return o.__dict__
            return str(o)

        return json.dumps(self, default=_default, indent=2, sort_keys=True)


def _expand_env(value: Any) -> Any:
    if isinstance(value, str):
        # Expand ${VAR} style
        return os.path.expandvars(value)
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


def _as_server(name: str, raw: Dict[str, Any]) -> Server:
    try:
        timeout = float(raw.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid timeout for server '{name}': {raw.get('timeout')!r}") from e
    return Server(
        name=name,
        url=str(raw.get("url") or "").strip(),
        username=_optional_str(raw.get("username")),
        password=_optional_str(raw.get("password")),
        timeout=timeout,
    )


def resolve_config_path() -> Path:
    # Highest priority: explicit override
    override = os.environ.get("STACTL_CONFIG")
    if override:
        p = Path(override).expanduser()
        if p.is_file():
            return p
        raise ConfigError(f"STACTL_CONFIG path not found: {p}")

    # XDG base dirs
    xdg_home = Path(os.environ.get("XDG_CONFIG_HOME", "~/.config")).expanduser()
    candidates = [xdg_home / "stactl" / "config.yaml"]

    xdg_dirs = os.environ.get("XDG_CONFIG_DIRS", "/etc/xdg")
    for d in xdg_dirs.split(":"):
        if d:
            candidates.append(Path(d) / "stactl" / "config.yaml")

    for c in candidates:
        if c.is_file():
            return c

    raise ConfigError(
        "No config file found. Set STACTL_CONFIG or create ~/.config/stactl/config.yaml"
    )


def load_config(path: Optional[Path] = None) -> Config:
    cfg_path = path or resolve_config_path()
    try:
        data = yaml.safe_load(cfg_path.read_text()) or {}
    except FileNotFoundError as e:
        raise ConfigError(str(e)) from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {cfg_path}: {e}") from e

    data = _expand_env(data)
    servers_raw = data.get("servers") or {}
    servers: Dict[str, Server] = {
        name: _as_server(name, raw or {}) for name, raw in servers_raw.items()
    }

    return Config(
        version=int(data.get("version", 1)),
        default_server=data.get("default_server"),
        servers=servers,
        source_path=cfg_path,
    )


def resolve_server(
    cfg: Optional[Config],
    name: Optional[str] = None,
    url: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
) -> Server:
    """Pick the server to talk to.

    An explicit URL always wins. Otherwise the named server, then the config's
    default server, then the built-in demo endpoint. Explicit credentials
    override whatever the config holds.
    """
    if url:
        server = Server(name=name or "adhoc", url=url)
        if cfg is not None and name in cfg.servers:
            base = cfg.servers[name]
            server = Server(name=name, url=url, username=base.username,
                            password=base.password, timeout=base.timeout)
    elif name:
        if cfg is None or name not in cfg.servers:
            raise ConfigError(f"Server not found: {name}")
        base = cfg.servers[name]
        server = Server(name=base.name, url=base.url, username=base.username,
                        password=base.password, timeout=base.timeout)
    elif cfg is not None and cfg.default_server:
        if cfg.default_server not in cfg.servers:
            raise ConfigError(f"Server not found: {cfg.default_server} (default_server)")
        base = cfg.servers[cfg.default_server]
        server = Server(name=base.name, url=base.url, username=base.username,
                        password=base.password, timeout=base.timeout)
    else:
        server = Server(name="default", url=DEFAULT_SERVER_URL)

    if username is not None:
        server.username = username
    if password is not None:
        server.password = password
    if not server.url:
        server.url = DEFAULT_SERVER_URL
    return server
