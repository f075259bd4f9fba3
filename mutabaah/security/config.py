from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class GateRules(BaseModel):
    """
    Static route classification used by the request gate.

    Static prefixes match on path prefix; public API prefixes match whole path
    segments; ``public_paths`` match exactly.
    """

    api_prefix: str = "/api"
    public_api_prefixes: list[str] = Field(
        default_factory=lambda: ["/api/auth/login", "/api/auth/register", "/api/auth/verify"]
    )
    static_prefixes: list[str] = Field(default_factory=lambda: ["/_next", "/static", "/favicon"])
    public_paths: list[str] = Field(default_factory=lambda: ["/health"])
    login_path: str = "/login"
    landing_path: str = "/dashboard"

    def is_static(self, path: str) -> bool:
        # Anything with a file extension is an asset.
        return "." in path or any(path.startswith(p) for p in self.static_prefixes)

    def is_api(self, path: str) -> bool:
        return path == self.api_prefix or path.startswith(self.api_prefix.rstrip("/") + "/")

    def is_public_api(self, path: str) -> bool:
        return any(path == p or path.startswith(p.rstrip("/") + "/") for p in self.public_api_prefixes)

    def is_public_page(self, path: str) -> bool:
        return path in self.public_paths


class SecurityConfigModel(BaseModel):
    gate: GateRules = Field(default_factory=GateRules)


class SecurityConfig:
    """
    Runtime wrapper around the validated config.
    """

    def __init__(self, model: SecurityConfigModel):
        self.model = model

    @property
    def gate(self) -> GateRules:
        return self.model.gate


def load_security_config(path: Path) -> SecurityConfig:
    raw_text = path.read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")

    model = SecurityConfigModel.model_validate(raw["security"])
    return SecurityConfig(model)
