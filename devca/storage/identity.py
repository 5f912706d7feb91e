# devca/storage/identity.py
"""
JSON identity record (config.json in the application directory).
Provides:
 - IdentityStore(path, defaults=None)
 - IdentityStore.load() -> Identity, creating the file with defaults on first use
 - IdentityStore.save(identity)
"""
import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import ValidationError

from devca.common.errors import IoError, ParseError
from devca.common.logger import get_logger
from devca.common.models import Identity

log = get_logger(__name__)


class IdentityStore:
    def __init__(self, path, defaults: Optional[Dict[str, str]] = None):
        self.path = Path(path)
        self.defaults = dict(defaults or {})

    def load(self) -> Identity:
        if not self.path.exists():
            identity = Identity(**self.defaults)
            log.info("no identity at %s, writing defaults", self.path)
            self.save(identity)
            return identity
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoError(f"could not read {self.path}: {exc}") from exc
        try:
            return Identity.model_validate_json(raw)
        except ValidationError as exc:
            raise ParseError(f"cannot parse identity file {self.path}: {exc}") from exc

    def save(self, identity: Identity) -> None:
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            tmp.write_text(identity.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise IoError(f"could not write {self.path}: {exc}") from exc
        log.debug("saved identity to %s (thumbprint=%s)", self.path, identity.thumbprint)
