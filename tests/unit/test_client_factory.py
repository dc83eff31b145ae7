"""
Tests for building storage clients.

Clients are real boto3 clients; nothing here opens a connection. Where a
request has to be observed, a before-send handler answers it with a
canned response instead of the network.
"""

import pytest
from botocore.exceptions import ClientError

from cosaccess.auth.models import AuthMode, HmacCredential, IamCredential
from cosaccess.config.access_config import AccessConfig
from cosaccess.errors import ClientConstructionError
from cosaccess.storage.client_factory import (
    REGION_NAME,
    SERVICE_INSTANCE_HEADER,
    ClientFactory,
    iam_request_hook,
    iam_response_hook,
    normalize_endpoint,
)

from canned_http import CannedSender


class FakeTokenProvider:
    instances = []

    def __init__(self, api_key, token_url=None, timeout=None):
        self.api_key = api_key
        self.token_url = token_url
        self.calls = 0
        self.invalidated = 0
        FakeTokenProvider.instances.append(self)

    def token(self):
        self.calls += 1
        return f"token-for-{self.api_key}"

    def invalidate(self):
        self.invalidated += 1


class FakeRequest:
    def __init__(self):
        self.headers = {}


@pytest.fixture
def factory(iam_service_credential):
    FakeTokenProvider.instances = []
    config = AccessConfig(credential=iam_service_credential, iam_token_url="https://iam.example.com/identity/token")
    return ClientFactory(config, token_provider_cls=FakeTokenProvider)


IAM = IamCredential(api_key="K", resource_instance_id="R")
HMAC = HmacCredential(access_key_id="AKID", secret_access_key="SECRET")


class TestNormalizeEndpoint:

    def test_bare_host_gets_https(self):
        assert normalize_endpoint("s3.us.cloud-object-storage.appdomain.cloud") == "https://s3.us.cloud-object-storage.appdomain.cloud"

    def test_scheme_is_kept(self):
        assert normalize_endpoint("http://localhost:9000/") == "http://localhost:9000"

    def test_empty_endpoint(self):
        with pytest.raises(ClientConstructionError):
            normalize_endpoint("  ")


class TestBuild:

    def test_hmac_client_is_bound_to_endpoint(self, factory):
        handle = factory.build("https://s3.us-south.example.com", AuthMode.HMAC, HMAC)

        assert handle.endpoint_url == "https://s3.us-south.example.com"
        assert handle.mode is AuthMode.HMAC
        assert handle.client.meta.endpoint_url == "https://s3.us-south.example.com"
        assert handle.client.meta.region_name == REGION_NAME

    def test_iam_client_does_not_fetch_token_at_construction(self, factory):
        handle = factory.build("s3.us.cloud-object-storage.appdomain.cloud", AuthMode.IAM, IAM)

        assert handle.endpoint_url == "https://s3.us.cloud-object-storage.appdomain.cloud"
        assert handle.client.meta.region_name == REGION_NAME
        assert len(FakeTokenProvider.instances) == 1
        assert FakeTokenProvider.instances[0].token_url == "https://iam.example.com/identity/token"
        assert FakeTokenProvider.instances[0].calls == 0

    def test_unknown_mode(self, factory):
        with pytest.raises(ClientConstructionError, match="Unsupported authentication mode"):
            factory.build("https://s3.example.com", "token", IAM)

    def test_mode_and_credential_must_agree(self, factory):
        with pytest.raises(ClientConstructionError):
            factory.build("https://s3.example.com", AuthMode.IAM, HMAC)

    def test_clients_are_cached_per_endpoint(self, factory):
        first = factory.build("https://s3.eu-de.example.com", AuthMode.HMAC, HMAC)
        second = factory.build("s3.eu-de.example.com", AuthMode.HMAC, HMAC)
        other = factory.build("https://s3.us-south.example.com", AuthMode.HMAC, HMAC)

        assert first.client is second.client
        assert first == second
        assert other.client is not first.client

    def test_rebind_returns_new_handle_and_leaves_original(self, factory):
        base = factory.build("https://s3.us.example.com", AuthMode.HMAC, HMAC)
        bound = factory.rebind(base, "https://s3.eu-de.example.com")

        assert bound.endpoint_url == "https://s3.eu-de.example.com"
        assert bound.credential == base.credential
        assert base.endpoint_url == "https://s3.us.example.com"
        assert base.client.meta.endpoint_url == "https://s3.us.example.com"

    def test_handle_is_immutable(self, factory):
        handle = factory.build("https://s3.us.example.com", AuthMode.HMAC, HMAC)
        with pytest.raises(AttributeError):
            handle.endpoint_url = "https://elsewhere.example.com"

    def test_secrets_stay_out_of_repr(self, factory):
        handle = factory.build("https://s3.us.example.com", AuthMode.HMAC, HMAC)
        assert "SECRET" not in repr(handle)


class TestIamRequestHook:

    def test_sets_bearer_and_instance_headers(self):
        provider = FakeTokenProvider("K")
        request = FakeRequest()
        iam_request_hook(provider, "R")(request=request)

        assert request.headers["Authorization"] == "Bearer token-for-K"
        assert request.headers[SERVICE_INSTANCE_HEADER] == "R"

    def test_instance_header_omitted_without_instance_id(self):
        request = FakeRequest()
        iam_request_hook(FakeTokenProvider("K"), None)(request=request)
        assert SERVICE_INSTANCE_HEADER not in request.headers

    def test_iam_request_carries_bearer_token(self, factory):
        """A full call through botocore picks up the token lazily."""
        handle = factory.build("https://s3.us-south.example.com", AuthMode.IAM, IAM)
        sender = CannedSender()
        handle.client.meta.events.register("before-send.s3", sender)

        handle.client.list_buckets()

        request = sender.requests[0]
        assert request.headers["Authorization"] == "Bearer token-for-K"
        assert request.headers[SERVICE_INSTANCE_HEADER] == "R"
        assert FakeTokenProvider.instances[0].calls == 1

    def test_hmac_request_is_sigv4_signed(self, factory):
        handle = factory.build("https://s3.us-south.example.com", AuthMode.HMAC, HMAC)
        sender = CannedSender()
        handle.client.meta.events.register("before-send.s3", sender)

        handle.client.list_buckets()

        authorization = sender.requests[0].headers["Authorization"]
        if isinstance(authorization, bytes):
            authorization = authorization.decode()
        assert authorization.startswith("AWS4-HMAC-SHA256 Credential=AKID/")
        assert f"/{REGION_NAME}/s3/" in authorization


class FakeResponse:
    def __init__(self, status_code):
        self.status_code = status_code


class TestIamResponseHook:

    @pytest.mark.parametrize("status_code", [401, 403])
    def test_rejected_token_is_dropped(self, status_code):
        provider = FakeTokenProvider("K")
        iam_response_hook(provider)(http_response=FakeResponse(status_code), parsed={})
        assert provider.invalidated == 1

    @pytest.mark.parametrize("status_code", [200, 404, 500])
    def test_other_statuses_keep_token(self, status_code):
        provider = FakeTokenProvider("K")
        iam_response_hook(provider)(http_response=FakeResponse(status_code), parsed={})
        assert provider.invalidated == 0

    def test_unauthorized_call_drops_token(self, factory):
        handle = factory.build("https://s3.us-south.example.com", AuthMode.IAM, IAM)
        sender = CannedSender(
            body=b'<?xml version="1.0" encoding="UTF-8"?><Error><Code>Unauthorized</Code><Message>expired</Message></Error>',
            status_code=401,
        )
        handle.client.meta.events.register("before-send.s3", sender)

        with pytest.raises(ClientError):
            handle.client.list_buckets()

        assert FakeTokenProvider.instances[0].invalidated == 1

    def test_hmac_clients_have_no_token_to_drop(self, factory):
        handle = factory.build("https://s3.us-south.example.com", AuthMode.HMAC, HMAC)
        handle.client.meta.events.register("before-send.s3", CannedSender(body=b"<Error><Code>Unauthorized</Code></Error>", status_code=401))

        with pytest.raises(ClientError):
            handle.client.list_buckets()

        assert FakeTokenProvider.instances == []
