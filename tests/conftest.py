"""Shared fixtures: credential documents, an endpoint directory, and an offline AWS environment."""

import pytest

from cosaccess.auth.models import ServiceCredential
from cosaccess.endpoints.models import EndpointDirectory


DIRECTORY_DOCUMENT = {
    "identity-endpoints": {"iam-token": "iam.cloud.ibm.com"},
    "service-endpoints": {
        "cross-region": {
            "us": {
                "public": {"us-geo": "s3.us.cloud-object-storage.appdomain.cloud"},
                "private": {"us-geo": "s3.private.us.cloud-object-storage.appdomain.cloud"},
            },
            "eu": {
                "public": {"eu-geo": "https://cos-eu.example.com"},
            },
        },
        "regional": {
            "us-south": {
                "public": {"default": "https://s3.us-south.example.com"},
                "private": {"default": "https://s3.private.us-south.example.com"},
            },
            "eu-de": {
                "public": {"default": "https://cos-eu-de.example.com"},
            },
            # also listed under cross-region; cross-region must win
            "eu": {
                "public": {"default": "https://regional-eu.example.com"},
            },
            "jp-tok": {
                "public": {},
                "private": {"default": "https://s3.private.jp-tok.example.com"},
            },
            "br-sao": {
                "private": {"default": "https://s3.private.br-sao.example.com"},
            },
        },
        "single-site": {
            "ams03": {
                "public": {
                    "ams03": "https://s3.ams03.example.com",
                    "ams03-alt": "https://s3-alt.ams03.example.com",
                },
            },
        },
    },
}


@pytest.fixture(autouse=True)
def offline_aws_env(monkeypatch):
    """Keep botocore from reading local AWS config or probing instance metadata."""
    for name in ("AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY", "AWS_SESSION_TOKEN", "AWS_PROFILE", "AWS_ENDPOINT_URL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("AWS_EC2_METADATA_DISABLED", "true")
    monkeypatch.setenv("AWS_CONFIG_FILE", "/nonexistent/aws-config")
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", "/nonexistent/aws-credentials")


@pytest.fixture
def directory_document():
    return DIRECTORY_DOCUMENT


@pytest.fixture
def directory():
    return EndpointDirectory.model_validate(DIRECTORY_DOCUMENT)


@pytest.fixture
def iam_service_credential():
    return ServiceCredential.model_validate({
        "apikey": "K",
        "resource_instance_id": "R",
        "endpoints": "https://control.example.com/v2/endpoints",
    })


@pytest.fixture
def hmac_service_credential():
    return ServiceCredential.model_validate({
        "cos_hmac_keys": {"access_key_id": "AKID", "secret_access_key": "SECRET"},
        "endpoints": "https://control.example.com/v2/endpoints",
    })
