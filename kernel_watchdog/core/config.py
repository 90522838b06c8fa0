"""Global configuration values for the kernel watchdog."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path

logger = logging.getLogger(__name__)

APP_NAME = "Cyber-Watchdog"
VERSION = "2.2.0"
API_KEY_ENV = "WATCHDOG_API_KEY"


@dataclass(frozen=True)
class Intervals:
    """Worker loop cadences (in seconds)."""

    collector: float = 0.8
    auditor: float = 5.0
    report: float = 3600.0


@dataclass(frozen=True)
class HistoryConfig:
    """Rolling window length for the trend series."""

    window: int = 120  # samples


@dataclass(frozen=True)
class LedgerConfig:
    """Sizing of the alert ledger and of the external log queries."""

    capacity: int = 500
    source_lines: int = 50  # most recent lines kept per external source
    analyze_lines: int = 20  # raw lines sent to the diagnostic service


@dataclass(frozen=True)
class Thresholds:
    """Daemon warning levels. Load limits are per logical CPU."""

    memory_warn: float = 85.0
    memory_crit: float = 95.0
    load_warn: float = 2.0
    load_crit: float = 5.0
    temp_warn: float = 80.0
    temp_crit: float = 95.0


@dataclass(frozen=True)
class DiagnosticsConfig:
    api_url: str = "https://openrouter.ai/api/v1/chat/completions"
    model: str = "google/gemini-2.0-flash-001"
    timeout: float = 30.0
    max_tokens: int = 2048
    temperature: float = 0.3
    api_key: str | None = None


@dataclass(frozen=True)
class SourcePaths:
    """Roots of the kernel pseudo filesystems. Tests point these at fixtures."""

    proc: Path = Path("/proc")
    sys: Path = Path("/sys")
    kmsg: Path = Path("/dev/kmsg")
    root: Path = Path("/")


@dataclass(frozen=True)
class RuntimePaths:
    binary: Path = Path("/usr/local/sbin/cyber-watchdog")
    log_dir: Path = Path("/var/log/cyber-watchdog")
    log_file: Path = Path("/var/log/cyber-watchdog/watchdog.log")
    pid_file: Path = Path("/var/run/cyber-watchdog.pid")
    config_file: Path = Path("/etc/cyber-watchdog.conf")


@dataclass(frozen=True)
class SecurityConfig:
    """Security-related defaults for the local HTTP server."""

    allowed_origins: tuple[str, ...] = ("http://127.0.0.1:8080", "http://localhost:8080")
    enable_rate_limit: bool = True
    rate_limit_requests: int = 120
    rate_limit_window_seconds: int = 60


@dataclass(frozen=True)
class WatchdogConfig:
    intervals: Intervals = field(default_factory=Intervals)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    thresholds: Thresholds = field(default_factory=Thresholds)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    sources: SourcePaths = field(default_factory=SourcePaths)
    paths: RuntimePaths = field(default_factory=RuntimePaths)
    security: SecurityConfig = field(default_factory=SecurityConfig)


CONFIG = WatchdogConfig()

# key in the config file -> (section, attribute, converter)
_FILE_KEYS = {
    "poll_interval": ("intervals", "auditor", float),
    "report_interval": ("intervals", "report", float),
    "memory_warn": ("thresholds", "memory_warn", float),
    "memory_crit": ("thresholds", "memory_crit", float),
    "load_warn": ("thresholds", "load_warn", float),
    "load_crit": ("thresholds", "load_crit", float),
    "temp_warn": ("thresholds", "temp_warn", float),
    "temp_crit": ("thresholds", "temp_crit", float),
    "ledger_capacity": ("ledger", "capacity", int),
    "history_window": ("history", "window", int),
    "api_key": ("diagnostics", "api_key", str),
}

DEFAULT_CONFIG_TEXT = """# Cyber-Watchdog Config
poll_interval = 5
report_interval = 3600
memory_warn = 85
memory_crit = 95
load_warn = 2.0
load_crit = 5.0
temp_warn = 80
temp_crit = 95
# api_key = sk-or-v1-your-key
"""


def parse_config_text(text: str) -> dict[str, str]:
    """Parse ``key = value`` lines, skipping blanks, comments and junk."""

    values: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        values[key.strip()] = value.strip()
    return values


def _apply(config: WatchdogConfig, values: dict[str, str]) -> WatchdogConfig:
    sections: dict[str, dict[str, object]] = {}
    for key, value in values.items():
        target = _FILE_KEYS.get(key)
        if target is None:
            logger.debug("Clave de configuración desconocida: %s", key)
            continue
        section, attribute, convert = target
        try:
            converted = convert(value)
        except ValueError:
            logger.warning("Valor inválido para '%s': %r", key, value)
            continue
        if convert is not str and converted <= 0:
            logger.warning("Valor fuera de rango para '%s': %r", key, value)
            continue
        sections.setdefault(section, {})[attribute] = converted

    updates = {
        name: replace(getattr(config, name), **changes)
        for name, changes in sections.items()
    }
    return replace(config, **updates)


def load_config(path: Path | None = None, base: WatchdogConfig = CONFIG) -> WatchdogConfig:
    """Load the ``key = value`` config file on top of ``base``.

    A missing or unreadable file yields ``base`` unchanged. The API key from
    the ``WATCHDOG_API_KEY`` environment variable wins over the file.
    """

    path = path or base.paths.config_file
    config = base
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        logger.debug("Sin archivo de configuración en %s", path)
    else:
        config = _apply(base, parse_config_text(text))

    env_key = os.environ.get(API_KEY_ENV, "").strip()
    if env_key:
        config = replace(config, diagnostics=replace(config.diagnostics, api_key=env_key))
    return config
