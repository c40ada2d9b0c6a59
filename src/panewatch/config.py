"""Configuration management for panewatch.

Handles monitor settings from the [default] table of panewatch.toml.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging
import tomllib

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "panewatch.toml"


@dataclass(frozen=True)
class MonitorConfig:
    """Settings for pane capture and logging.

    Attributes:
        base_dir: Root for pane log files.
        attach_on_serve: Attach capture pipes while monitoring.
        max_pane_log_bytes: Rotate a pane log once it grows past this size.
        retain_rotations: Rotated copies kept per pane log.
        tmux_socket_name: tmux -L socket name.
        tmux_socket_path: tmux -S socket path.
        pane_process_concurrency: Panes resolved in parallel per tick.
    """

    base_dir: Path = Path("~/.panewatch").expanduser()
    attach_on_serve: bool = True
    max_pane_log_bytes: int = 2_000_000
    retain_rotations: int = 5
    tmux_socket_name: str | None = None
    tmux_socket_path: str | None = None
    pane_process_concurrency: int = 8

    @property
    def server_key(self) -> str:
        """Directory-safe key for the tmux server being monitored."""
        return resolve_server_key(self.tmux_socket_name, self.tmux_socket_path)


def sanitize_server_key(value: str) -> str:
    """Replace "/" with "_" and anything else unsafe with "-"."""
    return "".join(c if c.isascii() and (c.isalnum() or c in "_-") else "-" for c in value.replace("/", "_"))


def resolve_server_key(socket_name: str | None, socket_path: str | None) -> str:
    if socket_name and socket_name.strip():
        return sanitize_server_key(socket_name)
    if socket_path and socket_path.strip():
        return sanitize_server_key(socket_path)
    return "default"


def _find_config_file() -> Optional[Path]:
    """Find panewatch.toml in current or parent directories."""
    current = Path.cwd()

    for parent in [current] + list(current.parents):
        config_file = parent / CONFIG_FILENAME
        if config_file.exists():
            return config_file

    return None


def _load_config(path: Optional[Path] = None) -> dict:
    """Load raw configuration from file."""
    if path is None:
        path = _find_config_file()

    if path is None or not path.exists():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _bool_setting(raw: dict, key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning(f"Invalid {key} {value!r}, using default")
    return default


def _int_setting(raw: dict, key: str, default: int, minimum: int = 0) -> int:
    value = raw.get(key, default)
    # bool is an int subclass, TOML true/false is not a count
    if isinstance(value, int) and not isinstance(value, bool) and value >= minimum:
        return value
    logger.warning(f"Invalid {key} {value!r}, using default")
    return default


class ConfigManager:
    """Manages configuration for panewatch."""

    def __init__(self, path: Optional[Path] = None):
        self._config_file = path or _find_config_file()
        self.data = _load_config(self._config_file)
        self._default_config = self.data.get("default", {})

    @property
    def monitor_config(self) -> MonitorConfig:
        """Build MonitorConfig, falling back to defaults for missing or invalid values."""
        defaults = MonitorConfig()
        raw = self._default_config

        base_dir = raw.get("base_dir")

        return MonitorConfig(
            base_dir=Path(base_dir).expanduser() if isinstance(base_dir, str) and base_dir else defaults.base_dir,
            attach_on_serve=_bool_setting(raw, "attach_on_serve", defaults.attach_on_serve),
            max_pane_log_bytes=_int_setting(raw, "max_pane_log_bytes", defaults.max_pane_log_bytes, minimum=1),
            retain_rotations=_int_setting(raw, "retain_rotations", defaults.retain_rotations),
            tmux_socket_name=_optional_str(raw.get("tmux_socket_name")),
            tmux_socket_path=_optional_str(raw.get("tmux_socket_path")),
            pane_process_concurrency=_int_setting(
                raw, "pane_process_concurrency", defaults.pane_process_concurrency, minimum=1
            ),
        )


# Global instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager() -> ConfigManager:
    """Get or create the global config manager."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def get_monitor_config() -> MonitorConfig:
    """Get monitor configuration."""
    return get_config_manager().monitor_config
