"""Tests for the vault REST client."""

import json

import httpx
import pytest

from vaultkeys.client import VaultClient
from vaultkeys.config import Settings
from vaultkeys.errors import RemoteServiceError
from vaultkeys.keys import AddKeyCommand, AddKeyParameters
from vaultkeys.models import JsonWebKey, JsonWebKeyType, KeyAttributes


def _key_response(name: str = "k1", kty: str = "RSA") -> dict:
    return {
        "key": {
            "kid": f"https://v1.vault.azure.net/keys/{name}/f00d",
            "kty": kty,
            "n": "AQ",
            "e": "AQAB",
        },
        "attributes": {"enabled": True, "created": 1700000000, "updated": 1700000000},
    }


class Recorder:
    """MockTransport handler that records requests and replays responses."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


def _client(recorder: Recorder, **kwargs) -> VaultClient:
    settings = Settings(access_token=kwargs.pop("token", "tok"))
    return VaultClient(settings, transport=httpx.MockTransport(recorder), **kwargs)


class TestVaultUrl:

    def test_from_name(self):
        client = VaultClient(Settings(dns_suffix="vault.usgovcloudapi.net"))
        assert client.vault_url("v1") == "https://v1.vault.usgovcloudapi.net"

    def test_full_url_is_kept(self):
        client = VaultClient(Settings())
        assert client.vault_url("http://localhost:8443/") == "http://localhost:8443"

    def test_key_name_is_quoted(self):
        client = VaultClient(Settings())
        assert client.key_url("v1", "a b") == "https://v1.vault.azure.net/keys/a%20b"


class TestCreateKey:

    @pytest.mark.asyncio
    async def test_request_shape(self):
        recorder = Recorder(httpx.Response(200, json=_key_response()))
        client = _client(recorder)

        attrs = KeyAttributes(enabled=False, key_type=JsonWebKeyType.RSA_HSM, key_ops=("sign",))
        bundle = await client.create_key("v1", "k1", attrs)
        await client.close()

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/keys/k1/create"
        assert request.url.host == "v1.vault.azure.net"
        assert request.url.params["api-version"] == "2015-06-01"
        assert request.headers["Authorization"] == "Bearer tok"
        assert recorder.last_body == {
            "kty": "RSA-HSM",
            "key_ops": ["sign"],
            "attributes": {"enabled": False},
        }
        assert bundle.name == "k1"
        assert bundle.version == "f00d"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        recorder = Recorder(httpx.Response(200, json=_key_response()))
        client = _client(recorder, token="")

        await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert "Authorization" not in recorder.requests[0].headers


class TestImportKey:

    MATERIAL = JsonWebKey(kty=JsonWebKeyType.RSA, n=b"\x01", e=b"\x01\x00\x01", d=b"\x02")

    @pytest.mark.asyncio
    async def test_request_shape(self):
        recorder = Recorder(httpx.Response(200, json=_key_response("k2")))
        client = _client(recorder)

        attrs = KeyAttributes(key_ops=("wrapKey", "unwrapKey"))
        bundle = await client.import_key("v1", "k2", attrs, self.MATERIAL, True)
        await client.close()

        request = recorder.requests[0]
        assert request.method == "PUT"
        assert request.url.path == "/keys/k2"
        assert recorder.last_body == {
            "key": {
                "kty": "RSA",
                "key_ops": ["wrapKey", "unwrapKey"],
                "n": "AQ",
                "e": "AQAB",
                "d": "Ag",
            },
            "attributes": {"enabled": True},
            "hsm": True,
        }
        assert bundle.name == "k2"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flag", [True, False])
    async def test_hsm_flag_is_sent(self, flag):
        recorder = Recorder(httpx.Response(200, json=_key_response("k2")))
        client = _client(recorder)
        await client.import_key("v1", "k2", KeyAttributes(), self.MATERIAL, flag)
        await client.close()
        assert recorder.last_body["hsm"] is flag

    @pytest.mark.asyncio
    async def test_hsm_flag_omitted_when_unset(self):
        recorder = Recorder(httpx.Response(200, json=_key_response("k2")))
        client = _client(recorder)
        await client.import_key("v1", "k2", KeyAttributes(), self.MATERIAL, None)
        await client.close()
        assert "hsm" not in recorder.last_body


class TestErrors:

    @pytest.mark.asyncio
    async def test_service_error_body(self):
        recorder = Recorder(httpx.Response(
            409, json={"error": {"code": "Conflict", "message": "Key k1 is being deleted"}},
        ))
        client = _client(recorder)

        with pytest.raises(RemoteServiceError) as exc_info:
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        error = exc_info.value
        assert error.status_code == 409
        assert error.code == "Conflict"
        assert "Key k1 is being deleted" in error.message
        assert error.to_dict()["category"] == "remote_service"

    @pytest.mark.asyncio
    async def test_non_json_error(self):
        recorder = Recorder(httpx.Response(503, text="upstream down"))
        client = _client(recorder)

        with pytest.raises(RemoteServiceError) as exc_info:
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert exc_info.value.status_code == 503
        assert exc_info.value.code is None

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = VaultClient(Settings(), transport=httpx.MockTransport(handler))
        with pytest.raises(RemoteServiceError, match="Could not reach vault") as exc_info:
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_401_without_provider_is_not_retried(self):
        recorder = Recorder(httpx.Response(401, json={"error": {"code": "Unauthorized", "message": "no"}}))
        client = _client(recorder)

        with pytest.raises(RemoteServiceError):
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("response", [
        httpx.Response(200, text="<html>proxy login</html>"),
        httpx.Response(200, json=["not", "a", "bundle"]),
        httpx.Response(200, json={"key": {"kty": "oct"}}),
    ])
    async def test_unreadable_success_body(self, response):
        client = _client(Recorder(response))

        with pytest.raises(RemoteServiceError, match="unreadable response") as exc_info:
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert exc_info.value.status_code == 200

    @pytest.mark.asyncio
    async def test_unreadable_success_body_reported_as_remote(self):
        client = _client(Recorder(httpx.Response(200, text="<html>")))

        result = await AddKeyCommand(client).invoke(AddKeyParameters("v1", "k1", destination="HSM"))
        await client.close()

        assert not result.ok
        assert result.error["category"] == "remote_service"
        assert result.error["status_code"] == 200


class TestCredentialProvider:

    @pytest.mark.asyncio
    async def test_fetches_token_when_none_configured(self):
        recorder = Recorder(httpx.Response(200, json=_key_response()))

        async def provider():
            return "fresh"

        client = _client(recorder, token="", credential_provider=provider)
        await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert recorder.requests[0].headers["Authorization"] == "Bearer fresh"

    @pytest.mark.asyncio
    async def test_refreshes_once_on_401(self):
        recorder = Recorder(
            httpx.Response(401),
            httpx.Response(200, json=_key_response()),
        )
        tokens = iter(["second"])

        async def provider():
            return next(tokens)

        client = _client(recorder, token="stale", credential_provider=provider)
        bundle = await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert [r.headers["Authorization"] for r in recorder.requests] == [
            "Bearer stale",
            "Bearer second",
        ]
        assert bundle.name == "k1"

    @pytest.mark.asyncio
    async def test_second_401_is_an_error(self):
        recorder = Recorder(httpx.Response(401), httpx.Response(401))

        async def provider():
            return "still-bad"

        client = _client(recorder, token="stale", credential_provider=provider)
        with pytest.raises(RemoteServiceError) as exc_info:
            await client.create_key("v1", "k1", KeyAttributes(key_type=JsonWebKeyType.RSA))
        await client.close()

        assert exc_info.value.status_code == 401
        assert len(recorder.requests) == 2
