from __future__ import annotations

import enum
import json
from dataclasses import dataclass
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cosaccess.errors import CredentialError


class AuthMode(str, enum.Enum):
    IAM = "iam"
    HMAC = "hmac"


class HmacKeys(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    access_key_id: Optional[str] = Field(None, description="HMAC access key id.")
    secret_access_key: Optional[str] = Field(None, description="HMAC secret access key.")


# Service credential document as issued for a storage service instance.
class ServiceCredential(BaseModel):
    model_config = ConfigDict(extra='ignore', populate_by_name=True, frozen=True)
    api_key: Optional[str] = Field(None, alias="apikey", description="IAM API key.")
    resource_instance_id: Optional[str] = Field(None, description="CRN of the storage service instance.")
    hmac: Optional[HmacKeys] = Field(None, alias="cos_hmac_keys", description="HMAC key pair, if generated.")
    endpoints: Optional[str] = Field(None, description="URL of the endpoint directory document.")
    iam_apikey_description: Optional[str] = None
    iam_apikey_id: Optional[str] = None
    iam_apikey_name: Optional[str] = None
    iam_role_crn: Optional[str] = None
    iam_serviceid_crn: Optional[str] = None

    @classmethod
    def from_json(cls, raw: str) -> "ServiceCredential":
        try:
            return cls.model_validate(json.loads(raw))
        except (ValueError, ValidationError) as e:
            raise CredentialError(f"Service credential is not a valid credential document: {e}") from e


@dataclass(frozen=True)
class IamCredential:
    api_key: str
    resource_instance_id: str | None


@dataclass(frozen=True)
class HmacCredential:
    access_key_id: str
    secret_access_key: str | None


ResolvedCredential = Union[IamCredential, HmacCredential]
