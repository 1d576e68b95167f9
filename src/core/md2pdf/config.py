from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping

from ..constraint import DEFAULT_CONFIG_PATH


DEFAULT_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--single-process",
    "--disable-gpu",
)


@dataclass(slots=True)
class RuntimeConfig:
    log_dir: Path | None = Path("logs")
    log_file: str = "conversions.jsonl"
    max_markdown_chars: int = 10 * 1024 * 1024
    max_upload_mb: int = 10
    load_timeout_s: float = 30.0
    render_timeout_s: float = 60.0
    enable_local_api: bool = True

    @property
    def log_path(self) -> Path | None:
        if self.log_dir is None:
            return None
        return self.log_dir / self.log_file


@dataclass(slots=True)
class EngineConfig:
    headless: bool = True
    launch_args: tuple[str, ...] = DEFAULT_LAUNCH_ARGS
    executable_path: Path | None = None


@dataclass(slots=True)
class APIConfig:
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass(slots=True)
class AppConfig:
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    api: APIConfig = field(default_factory=APIConfig)


def _read_toml(path: Path) -> Mapping[str, object]:
    if not path.exists():
        return {}
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _optional_path(value: object | None, default: Path | None) -> Path | None:
    if value is None:
        return default
    text = str(value).strip()
    return Path(text) if text else None


def _build_runtime(data: Mapping[str, object] | None) -> RuntimeConfig:
    if not data:
        return RuntimeConfig()
    return RuntimeConfig(
        log_dir=_optional_path(data.get("log_dir"), Path("logs")),
        log_file=str(data.get("log_file", "conversions.jsonl")),
        max_markdown_chars=int(data.get("max_markdown_chars", 10 * 1024 * 1024)),
        max_upload_mb=int(data.get("max_upload_mb", 10)),
        load_timeout_s=float(data.get("load_timeout_s", 30.0)),
        render_timeout_s=float(data.get("render_timeout_s", 60.0)),
        enable_local_api=bool(data.get("enable_local_api", True)),
    )


def _tuple_of_strings(value: object | None, default: Iterable[str]) -> tuple[str, ...]:
    if value is None:
        return tuple(default)
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Iterable):
        return tuple(str(item) for item in value)
    raise TypeError(f"Unsupported launch_args configuration: {value!r}")


def _build_engine(data: Mapping[str, object] | None) -> EngineConfig:
    if not data:
        return EngineConfig()
    return EngineConfig(
        headless=bool(data.get("headless", True)),
        launch_args=_tuple_of_strings(data.get("launch_args"), DEFAULT_LAUNCH_ARGS),
        executable_path=_optional_path(data.get("executable_path"), None),
    )


def _build_api(data: Mapping[str, object] | None) -> APIConfig:
    if not data:
        return APIConfig()
    return APIConfig(host=str(data.get("host", "127.0.0.1")), port=int(data.get("port", 3000)))


def _section(raw: Mapping[str, object], name: str) -> Mapping[str, object] | None:
    value = raw.get(name) if isinstance(raw, Mapping) else None
    return value if isinstance(value, Mapping) else None


def load_config(path: Path | None = None) -> AppConfig:
    path = path or DEFAULT_CONFIG_PATH
    raw = _read_toml(path)
    return AppConfig(
        runtime=_build_runtime(_section(raw, "runtime")),
        engine=_build_engine(_section(raw, "engine")),
        api=_build_api(_section(raw, "api")),
    )


def dump_config(config: AppConfig) -> str:
    payload = {
        "runtime": {
            "log_dir": str(config.runtime.log_dir) if config.runtime.log_dir else "",
            "log_file": config.runtime.log_file,
            "max_markdown_chars": config.runtime.max_markdown_chars,
            "max_upload_mb": config.runtime.max_upload_mb,
            "load_timeout_s": config.runtime.load_timeout_s,
            "render_timeout_s": config.runtime.render_timeout_s,
            "enable_local_api": config.runtime.enable_local_api,
        },
        "engine": {
            "headless": config.engine.headless,
            "launch_args": list(config.engine.launch_args),
            "executable_path": str(config.engine.executable_path) if config.engine.executable_path else "",
        },
        "api": {
            "host": config.api.host,
            "port": config.api.port,
        },
    }
    return json.dumps(payload, indent=2)
