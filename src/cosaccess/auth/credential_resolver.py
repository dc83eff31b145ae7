from __future__ import annotations

from cosaccess.auth.models import AuthMode, HmacCredential, IamCredential, ResolvedCredential, ServiceCredential
from cosaccess.errors import CredentialError
from cosaccess.logging_config import get_logger, mask

logger = get_logger(__name__)


def _hmac_credential(credential: ServiceCredential) -> HmacCredential | None:
    keys = credential.hmac
    if keys is None or not keys.access_key_id:
        return None
    return HmacCredential(access_key_id=keys.access_key_id, secret_access_key=keys.secret_access_key)


def resolve(credential: ServiceCredential, use_hmac: bool = False) -> tuple[AuthMode, ResolvedCredential]:
    """
    Pick the authentication mode for a service credential.

    A non-empty API key always wins and selects IAM; the resource instance id
    is carried as-is and only checked by the service at connect time. Without
    an API key, an HMAC access key id selects HMAC. With use_hmac=True the
    caller insists on HMAC and the API key is not considered.
    """
    if use_hmac:
        hmac = _hmac_credential(credential)
        if hmac is None:
            raise CredentialError("HMAC credentials required: cos_hmac_keys.access_key_id is missing.")
        logger.info("Resolved credential: mode=%s access_key_id=%s", AuthMode.HMAC.value, mask(hmac.access_key_id))
        return AuthMode.HMAC, hmac

    if credential.api_key:
        iam = IamCredential(api_key=credential.api_key, resource_instance_id=credential.resource_instance_id)
        logger.info(
            "Resolved credential: mode=%s api_key=%s resource_instance_id=%s",
            AuthMode.IAM.value,
            mask(iam.api_key),
            iam.resource_instance_id,
        )
        return AuthMode.IAM, iam

    hmac = _hmac_credential(credential)
    if hmac is not None:
        logger.info("Resolved credential: mode=%s access_key_id=%s", AuthMode.HMAC.value, mask(hmac.access_key_id))
        return AuthMode.HMAC, hmac

    raise CredentialError("No usable authentication material: neither apikey nor cos_hmac_keys.access_key_id is set.")
