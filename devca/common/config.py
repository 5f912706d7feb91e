# devca/common/config.py
"""
Runtime configuration.
load_settings() is called once by the CLI; the resulting Settings object is
passed explicitly to every component, nothing else reads the environment.

Environment variables:
 - DEVCA_HOME         application directory (default ~/devca)
 - DEVCA_CURVE        P-256 or P-384 (default P-384)
 - DEVCA_CA_DAYS      root CA validity in days (default 3650)
 - DEVCA_LEAF_DAYS    leaf certificate validity in days (default 825)
 - DEVCA_LOG_LEVEL    logging level name (default WARNING)
 - COMMON_NAME, LOCALITY, COUNTRY, ORG_UNIT, ORG_NAME
                      seed the identity file when it is first created
"""
import logging
import os
from pathlib import Path
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from devca.common.errors import ParseError

SUPPORTED_CURVES = ("P-256", "P-384")

IDENTITY_ENV = {
    "COMMON_NAME": "common_name",
    "LOCALITY": "locality",
    "COUNTRY": "country",
    "ORG_UNIT": "org_unit",
    "ORG_NAME": "org_name",
}


def default_app_dir() -> Path:
    return Path.home() / "devca"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_dir: Path = Field(default_factory=default_app_dir)
    curve: str = "P-384"
    ca_validity_days: int = Field(default=3650, gt=0)
    leaf_validity_days: int = Field(default=825, gt=0)
    log_level: str = "WARNING"
    identity_defaults: Dict[str, str] = Field(default_factory=dict)

    @field_validator("curve")
    @classmethod
    def _known_curve(cls, value: str) -> str:
        value = value.upper()
        if value not in SUPPORTED_CURVES:
            raise ValueError(f"unsupported curve {value!r}, expected one of {', '.join(SUPPORTED_CURVES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"unknown log level {value!r}")
        return value

    @property
    def identity_path(self) -> Path:
        return self.app_dir / "config.json"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from environment variables (os.environ by default)."""
    env = os.environ if environ is None else environ
    values = {}
    if env.get("DEVCA_HOME"):
        values["app_dir"] = Path(env["DEVCA_HOME"]).expanduser()
    if env.get("DEVCA_CURVE"):
        values["curve"] = env["DEVCA_CURVE"]
    if env.get("DEVCA_CA_DAYS"):
        values["ca_validity_days"] = env["DEVCA_CA_DAYS"]
    if env.get("DEVCA_LEAF_DAYS"):
        values["leaf_validity_days"] = env["DEVCA_LEAF_DAYS"]
    if env.get("DEVCA_LOG_LEVEL"):
        values["log_level"] = env["DEVCA_LOG_LEVEL"]
    values["identity_defaults"] = {
        field: env[name] for name, field in IDENTITY_ENV.items() if env.get(name)
    }
    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ParseError(f"invalid configuration: {exc}") from exc
