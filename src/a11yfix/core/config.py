"""Configuration management for a11yfix (a11yfix.toml parsing + env + defaults)."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    try:
        import tomli as tomllib  # type: ignore[no-redef]
    except ImportError:
        tomllib = None  # type: ignore[assignment]

CONFIG_FILENAME = "a11yfix.toml"
DEFAULT_API_URL = "http://localhost:7071/api"
DEFAULT_CHUNK_TOKENS = 4000
REPORT_OUTPUT_FILENAME = "a11y-report"

API_URL_ENV = "A11Y_API_URL"
API_KEY_ENV = "A11Y_API_KEY"


@dataclass
class ServiceConfig:
    api_url: str = DEFAULT_API_URL
    api_key: str = ""
    timeout: float = 120.0
    max_retries: int = 3


@dataclass
class ChunkConfig:
    max_tokens: int = DEFAULT_CHUNK_TOKENS
    model: str = "gpt-4"


@dataclass
class ScanConfig:
    command: str = "npx playwright test --config playwright.config.cjs"
    timeout: float = 300.0


@dataclass
class A11yFixConfig:
    """Complete a11yfix configuration."""

    exclude: list[str] = field(
        default_factory=lambda: [
            "node_modules/",
            ".git/",
            f"{REPORT_OUTPUT_FILENAME}.*",
        ]
    )
    service: ServiceConfig = field(default_factory=ServiceConfig)
    chunking: ChunkConfig = field(default_factory=ChunkConfig)
    scan: ScanConfig = field(default_factory=ScanConfig)


def load_config(
    project_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> A11yFixConfig:
    """Load configuration from a11yfix.toml if present, then apply env overrides."""
    config = A11yFixConfig()

    if project_path is None:
        project_path = Path.cwd()
    if env is None:
        env = os.environ

    config_file = project_path / CONFIG_FILENAME
    if config_file.exists() and tomllib is not None:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
        _apply_file_settings(config, data)

    if env.get(API_URL_ENV):
        config.service.api_url = env[API_URL_ENV]
    if env.get(API_KEY_ENV):
        config.service.api_key = env[API_KEY_ENV]

    config.service.api_url = config.service.api_url.rstrip("/")
    return config


def _apply_file_settings(config: A11yFixConfig, data: dict) -> None:
    if "general" in data:
        gen = data["general"]
        if "exclude" in gen:
            config.exclude = gen["exclude"]

    if "service" in data:
        s = data["service"]
        for attr in ("api_url", "api_key", "timeout", "max_retries"):
            if attr in s:
                setattr(config.service, attr, s[attr])

    if "chunking" in data:
        c = data["chunking"]
        if "max_tokens" in c:
            if c["max_tokens"] <= 0:
                raise ValueError(f"chunking.max_tokens must be positive, got {c['max_tokens']}")
            config.chunking.max_tokens = c["max_tokens"]
        if "model" in c:
            config.chunking.model = c["model"]

    if "scan" in data:
        sc = data["scan"]
        if "command" in sc:
            config.scan.command = sc["command"]
        if "timeout" in sc:
            config.scan.timeout = sc["timeout"]
