from __future__ import annotations

import asyncio
import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

SECRET_ENV_VAR = "URL_SECRET"
CONFIG_ENV_VAR = "NOTIFIER_CONFIG"

DEFAULT_LISTEN = ":8081"
DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_CONFIG_PATHS = (
    Path("config.yml"),
    Path("config.yaml"),
    Path("/etc/jira-chat-notifier/config.yml"),
)


class ConfigError(Exception):
    """Raised when the configuration cannot be loaded or is incomplete."""


def _load_file(path: str | Path) -> dict:
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"config file reading error: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"config file parsing error: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file parsing error: {path} must contain a mapping")
    return data


def find_config_file(path: str | Path | None = None) -> Path:
    """Return the configuration file to use.

    An explicit path wins, then the ``NOTIFIER_CONFIG`` environment variable,
    then the first existing file of ``DEFAULT_CONFIG_PATHS``.
    """
    if path:
        return Path(path)
    env_path = os.getenv(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)
    for candidate in DEFAULT_CONFIG_PATHS:
        if candidate.is_file():
            return candidate
    searched = ", ".join(str(p) for p in DEFAULT_CONFIG_PATHS)
    raise ConfigError(f"config file not found (searched: {searched})")


def _parse_events(value: Any, where: str) -> Tuple[str, ...]:
    if value is None or value == "":
        return ()
    if isinstance(value, str):
        tokens = value.split(",")
    elif isinstance(value, (list, tuple)):
        tokens = [str(item) for item in value]
    else:
        raise ConfigError(f"{where}.on_events must be a string or a list")
    return tuple(token.strip() for token in tokens if token.strip())


@dataclass(frozen=True)
class OutboundTarget:
    """One outgoing chat webhook configured for a project."""

    webhook: str
    ticket_url: str = ""
    on_events: Tuple[str, ...] = ()

    def accepts(self, *events: str) -> bool:
        """Return True when no filter is set or one of ``events`` is listed."""
        if not self.on_events:
            return True
        return any(event in self.on_events for event in events if event)


@dataclass(frozen=True)
class GeneralConfig:
    """Settings shared by every project."""

    secret: str
    ticket_url: str = ""
    listen: str = DEFAULT_LISTEN
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def bind_address(self) -> Tuple[str, int]:
        """Split ``listen`` into host and port, e.g. ``":8081"`` -> ``("0.0.0.0", 8081)``."""
        host, sep, port = self.listen.rpartition(":")
        if not sep:
            host, port = "", self.listen
        try:
            port_number = int(port)
        except ValueError:
            raise ConfigError(f"general.listen is not a valid address: {self.listen!r}") from None
        if not 0 < port_number < 65536:
            raise ConfigError(f"general.listen port out of range: {self.listen!r}")
        return host or "0.0.0.0", port_number


def _parse_targets(project_key: str, entries: Any) -> Tuple[OutboundTarget, ...]:
    if entries is None:
        return ()
    if not isinstance(entries, list):
        raise ConfigError(f"projects.{project_key} must be a list of webhook targets")

    targets: List[OutboundTarget] = []
    for index, entry in enumerate(entries):
        where = f"projects.{project_key}[{index}]"
        if not isinstance(entry, dict):
            raise ConfigError(f"{where} must be a mapping")
        webhook = str(entry.get("webhook") or "").strip()
        if not webhook:
            raise ConfigError(f"{where}.webhook not configured")
        targets.append(
            OutboundTarget(
                webhook=webhook,
                ticket_url=str(entry.get("ticket_url") or ""),
                on_events=_parse_events(entry.get("on_events"), where),
            )
        )
    return tuple(targets)


def _parse_general(data: Any) -> GeneralConfig:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError("general must be a mapping")

    file_secret = str(data.get("secret") or "")
    env_secret = os.getenv(SECRET_ENV_VAR, "")
    if env_secret and file_secret:
        logger.warning("secret configured in config file and env var - env var has precedence")
    secret = env_secret or file_secret
    if not secret:
        raise ConfigError("general.secret not configured")

    ticket_url = str(data.get("ticket_url") or "")
    if not ticket_url:
        logger.warning("general.ticket_url not configured")

    listen = str(data.get("listen") or "")
    if not listen:
        logger.info(f"general.listen not configured - defaulting to {DEFAULT_LISTEN}")
        listen = DEFAULT_LISTEN

    try:
        raw_timeout = data.get("request_timeout")
        request_timeout = DEFAULT_REQUEST_TIMEOUT if raw_timeout is None else float(raw_timeout)
    except (TypeError, ValueError):
        raise ConfigError("general.request_timeout must be a number") from None
    if request_timeout <= 0:
        raise ConfigError("general.request_timeout must be positive")

    general = GeneralConfig(
        secret=secret,
        ticket_url=ticket_url,
        listen=listen,
        request_timeout=request_timeout,
    )
    general.bind_address()
    return general


@dataclass(frozen=True)
class NotifierConfig:
    """Immutable snapshot of the whole configuration (the route table)."""

    general: GeneralConfig
    projects: Mapping[str, Tuple[OutboundTarget, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    source: Optional[Path] = None

    def targets_for(self, project_key: str) -> Tuple[OutboundTarget, ...]:
        """Return the targets of a project, matching the key case-insensitively."""
        return self.projects.get(project_key.lower(), ())

    def has_project(self, project_key: str) -> bool:
        return bool(self.targets_for(project_key))

    @staticmethod
    def from_dict(data: Dict[str, Any], source: Optional[Path] = None) -> "NotifierConfig":
        """Build a configuration snapshot from already parsed data."""

        general = _parse_general(data.get("general"))

        projects_data = data.get("projects") or {}
        if not isinstance(projects_data, dict):
            raise ConfigError("projects must be a mapping of project key to webhook targets")

        projects: Dict[str, Tuple[OutboundTarget, ...]] = {}
        for key, entries in projects_data.items():
            normalized = str(key).lower()
            if normalized in projects:
                raise ConfigError(f"project {key} configured more than once")
            projects[normalized] = _parse_targets(str(key), entries)

        return NotifierConfig(
            general=general,
            projects=MappingProxyType(projects),
            source=source,
        )

    @staticmethod
    def load(path: str | Path | None = None) -> "NotifierConfig":
        """Load configuration from a YAML file."""

        config_path = find_config_file(path)
        data = _load_file(config_path)
        return NotifierConfig.from_dict(data, source=config_path)


class ConfigStore:
    """Owns the active configuration snapshot.

    Request handlers read ``current`` once per request. ``reload`` builds a
    new snapshot and replaces the reference in a single assignment, so a
    reader sees either the old or the new table, never a mix of both.
    """

    def __init__(self, config: NotifierConfig, path: str | Path | None = None) -> None:
        self._current = config
        self.path = Path(path) if path else config.source
        self._reload_lock = threading.Lock()

    @classmethod
    def from_file(cls, path: str | Path | None = None) -> "ConfigStore":
        config = NotifierConfig.load(path)
        return cls(config, config.source)

    @property
    def current(self) -> NotifierConfig:
        return self._current

    def reload(self) -> bool:
        """Re-read the configuration file.

        Returns True when the new configuration is active. A failing reload
        is logged and the previous configuration stays in effect.
        """
        if self.path is None:
            logger.error("Configuration reload requested but no configuration file is known")
            return False

        with self._reload_lock:
            try:
                new_config = NotifierConfig.load(self.path)
            except ConfigError as e:
                logger.error(f"Configuration reload failed, keeping previous configuration: {e}")
                return False

            if new_config.general.listen != self._current.general.listen:
                logger.warning("general.listen changed - restart required for the new address to take effect")
            self._current = new_config

        logger.info(f"Configuration reloaded from {self.path}")
        return True


class ConfigWatcher:
    """Polls the configuration file and reloads the store when it changes."""

    def __init__(self, store: ConfigStore, interval: float = 2.0) -> None:
        self.store = store
        self.interval = interval
        self.watch_task: asyncio.Task[None] | None = None
        self._last_mtime = self._mtime()

    def _mtime(self) -> Optional[int]:
        if self.store.path is None:
            return None
        try:
            return self.store.path.stat().st_mtime_ns
        except OSError:
            return None

    def check(self) -> bool:
        """Reload when the file changed since the last check.

        Returns True only when a changed file was reloaded successfully.
        """
        mtime = self._mtime()
        if mtime is None or mtime == self._last_mtime:
            return False
        self._last_mtime = mtime
        logger.info("Configuration file changed, reloading configuration")
        return self.store.reload()

    def start(self) -> None:
        """Start the background watch task."""

        if self.watch_task is None or self.watch_task.done():
            self.watch_task = asyncio.create_task(self._watch())

    async def stop(self) -> None:
        """Stop the background watch task."""

        if self.watch_task is not None:
            self.watch_task.cancel()
            try:
                await self.watch_task
            except asyncio.CancelledError:  # pragma: no cover - cancellation path
                pass

    async def _watch(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break
            try:
                self.check()
            except Exception as e:
                logger.error(f"Configuration watch check failed, keeping previous configuration: {e}")
