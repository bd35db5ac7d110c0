import logging
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "json"            # "json" | "text"

    # Taxonomy: empty means the built-in module/role tables
    taxonomy_file: str = ""

    # Capability policy
    resend_invitation_roles: str = ""   # comma-separated; empty = the global role, "*" = any role

    # Metrics
    metrics_enabled: bool = True

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _validate(self):
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown LOG_LEVEL {self.log_level!r}")
        if self.log_format not in ("json", "text"):
            raise ValueError("LOG_FORMAT must be 'json' or 'text'")
        if self.taxonomy_file and not Path(self.taxonomy_file).is_file():
            raise ValueError(f"TAXONOMY_FILE {self.taxonomy_file!r} does not exist")
        if self.environment == "production" and self.log_format != "json":
            raise ValueError("Production requires LOG_FORMAT=json")
        return self

    @property
    def resend_invitation_role_set(self) -> frozenset[str] | None:
        if self.resend_invitation_roles.strip() == "*":
            return frozenset()
        roles = frozenset(r.strip() for r in self.resend_invitation_roles.split(",") if r.strip())
        return roles or None


settings = Settings()
