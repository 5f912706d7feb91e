# devca/common/models.py
from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional

from cryptography import x509
from cryptography.x509.oid import NameOID

from devca.common.errors import ParseError

DEFAULT_COMMON_NAME = "Devca Development CA"
DEFAULT_LOCALITY = "San Francisco"
DEFAULT_COUNTRY = "US"
DEFAULT_ORG_UNIT = "Development"
DEFAULT_ORG_NAME = "devca"


class Identity(BaseModel):
    """
    Distinguished-name attributes shared by the root CA and every leaf,
    plus the thumbprint of the CA currently believed to be trusted.
    """
    model_config = ConfigDict(frozen=True)

    common_name: str = DEFAULT_COMMON_NAME
    locality: str = DEFAULT_LOCALITY
    country: str = DEFAULT_COUNTRY
    org_unit: str = DEFAULT_ORG_UNIT
    org_name: str = DEFAULT_ORG_NAME
    thumbprint: Optional[str] = None

    @field_validator("common_name", "locality", "country", "org_unit", "org_name", mode="before")
    @classmethod
    def _null_means_default(cls, value, info):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @property
    def installed(self) -> bool:
        return self.thumbprint is not None

    def with_thumbprint(self, thumbprint: str) -> "Identity":
        return self.model_copy(update={"thumbprint": thumbprint})

    def without_thumbprint(self) -> "Identity":
        return self.model_copy(update={"thumbprint": None})

    def distinguished_name(self) -> x509.Name:
        try:
            return x509.Name([
                x509.NameAttribute(NameOID.COMMON_NAME, self.common_name),
                x509.NameAttribute(NameOID.LOCALITY_NAME, self.locality),
                x509.NameAttribute(NameOID.COUNTRY_NAME, self.country),
                x509.NameAttribute(NameOID.ORGANIZATION_NAME, self.org_name),
                x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, self.org_unit),
            ])
        except ValueError as exc:
            raise ParseError(f"invalid identity attribute: {exc}") from exc


class TrustStoreResult(BaseModel):
    success: bool
    diagnostic: str = ""
