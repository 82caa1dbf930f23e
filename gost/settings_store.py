from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

DEFAULT_HTTP_PORT = 8000
DEFAULT_HTTPS_PORT = 8443


@dataclass
class ServiceSettings:
    host: str = "0.0.0.0"
    http_port: int = DEFAULT_HTTP_PORT
    https_port: int = DEFAULT_HTTPS_PORT
    cert_file: str = "gost.crt"
    key_file: str = "gost.key"


def load_settings(path: Optional[Path] = None) -> ServiceSettings:
    """Return the deployment defaults, overridden by the ``[server]`` section of ``path``.

    A missing file raises ``FileNotFoundError``; a file configparser cannot
    parse raises ``configparser.Error``. Bad individual values fall back to
    their defaults.
    """
    if path is None:
        return ServiceSettings()
    settings_path = Path(path)
    if not settings_path.is_file():
        raise FileNotFoundError(f"settings file not found: {settings_path}")
    parser = configparser.ConfigParser()
    parser.read(settings_path, encoding="utf-8")
    return _from_parser(parser)


def _from_parser(parser: configparser.ConfigParser) -> ServiceSettings:
    defaults = ServiceSettings()
    section = parser["server"] if parser.has_section("server") else {}
    return ServiceSettings(
        host=str(section.get("host", defaults.host)).strip(),
        http_port=_clamp_int(_get_int(section, "http_port", defaults.http_port), 0, 65535),
        https_port=_clamp_int(_get_int(section, "https_port", defaults.https_port), 0, 65535),
        cert_file=_get_path(section, "cert_file", defaults.cert_file),
        key_file=_get_path(section, "key_file", defaults.key_file),
    )


def _get_int(section, key: str, default: int) -> int:
    try:
        return int(str(section.get(key, str(default))).strip())
    except ValueError:
        return default


def _get_path(section, key: str, default: str) -> str:
    raw = str(section.get(key, default)).strip()
    return raw or default


def _clamp_int(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))
