import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import respx
from httpx import Response

from projectsquared_auth.clients.oauth import OAuthClientError, OAuthConfigurationError
from projectsquared_auth.profile import ProfileFormatError, build_profile
from projectsquared_auth.strategy import (
    AUTHORIZATION_URL,
    PROFILE_URL,
    TOKEN_URL,
    InternalOAuthError,
    ProfileResult,
    ProjectSquaredStrategy,
    StrategyOptions,
)


CALLBACK = "https://www.example.net/auth/projectsquared/callback"


def _options(**overrides) -> StrategyOptions:
    values = dict(client_id="123-456-789", client_secret="shhh-its-a-secret", callback_url=CALLBACK)
    values.update(overrides)
    return StrategyOptions(**values)


def _verify(access_token, refresh_token, profile):
    return {"id": profile.id, "access_token": access_token, "refresh_token": refresh_token}


def test_defaults_endpoints_and_name():
    strategy = ProjectSquaredStrategy(_options(), _verify)

    assert strategy.name == "projectsquared"
    assert strategy.authorization_endpoint == "https://idbroker.webex.com/idb/oauth2/v1/authorize"
    assert strategy.token_endpoint == "https://idbroker.webex.com/idb/oauth2/v1/access_token"
    assert strategy.profile_url == PROFILE_URL


def test_endpoint_overrides():
    strategy = ProjectSquaredStrategy(
        _options(
            authorization_url="https://idp.local/authorize",
            token_url="https://idp.local/token",
            profile_url="https://idp.local/me",
        ),
        _verify,
    )

    assert strategy.authorization_endpoint == "https://idp.local/authorize"
    assert strategy.token_endpoint == "https://idp.local/token"
    assert strategy.profile_url == "https://idp.local/me"
    assert strategy.authorization_url("s").startswith("https://idp.local/authorize?")


def test_missing_client_id_is_a_configuration_error():
    with pytest.raises(OAuthConfigurationError):
        ProjectSquaredStrategy(_options(client_id=""), _verify)


def test_authorization_url_parameters():
    strategy = ProjectSquaredStrategy(_options(scope="spark:people_read"), _verify)
    url = urlparse(strategy.authorization_url("state-1", code_challenge="abc"))
    query = parse_qs(url.query)

    assert f"{url.scheme}://{url.netloc}{url.path}" == AUTHORIZATION_URL
    assert query["response_type"] == ["code"]
    assert query["client_id"] == ["123-456-789"]
    assert query["redirect_uri"] == [CALLBACK]
    assert query["state"] == ["state-1"]
    assert query["scope"] == ["spark:people_read"]
    assert query["code_challenge"] == ["abc"]
    assert query["code_challenge_method"] == ["S256"]


def test_profile_result_requires_exactly_one_side():
    with pytest.raises(ValueError):
        ProfileResult()


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_flat_body():
    body = '{"id":"42","name":"Ada","email":"a@x.com"}'
    route = respx.get(PROFILE_URL).mock(return_value=Response(200, text=body))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("token-abc")

    assert route.call_count == 1
    assert route.calls.last.request.headers["Authorization"] == "Bearer token-abc"
    assert result.ok
    assert result.error is None
    assert result.profile.as_dict() == {
        "provider": "projectsquared",
        "id": "42",
        "displayName": "Ada",
        "emails": [{"value": "a@x.com"}],
    }
    assert result.profile.raw_body == body
    assert result.profile.raw_json == json.loads(body)


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_user_id_contract():
    respx.get(PROFILE_URL).mock(
        return_value=Response(200, json={"user_id": "u-1", "name": "Grace", "email": "g@x.com"})
    )
    strategy = ProjectSquaredStrategy(_options(profile_id_field="user_id"), _verify)

    profile = (await strategy.user_profile("t")).unwrap()

    assert profile.id == "u-1"
    assert profile.display_name == "Grace"
    assert [e.value for e in profile.emails] == ["g@x.com"]


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_nested_body():
    respx.get(PROFILE_URL).mock(
        return_value=Response(
            200,
            json={"Profile": {"CustomerId": "c-9", "Name": "Linus", "PrimaryEmail": "l@x.com"}},
        )
    )
    strategy = ProjectSquaredStrategy(_options(), _verify)

    profile = (await strategy.user_profile("t")).unwrap()

    assert profile.provider == "projectsquared"
    assert profile.id == "c-9"
    assert profile.display_name == "Linus"
    assert [e.value for e in profile.emails] == ["l@x.com"]


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_transport_error():
    route = respx.get(PROFILE_URL).mock(side_effect=httpx.ConnectError("connection refused"))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("t")

    assert route.call_count == 1
    assert result.profile is None
    assert isinstance(result.error, InternalOAuthError)
    assert result.error.args[0] == "failed to fetch user profile"
    assert isinstance(result.error.oauth_error, OAuthClientError)
    with pytest.raises(InternalOAuthError):
        result.unwrap()


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_http_error_is_not_retried():
    route = respx.get(PROFILE_URL).mock(return_value=Response(401, json={"message": "expired"}))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("t")

    assert route.call_count == 1
    assert isinstance(result.error, InternalOAuthError)
    assert result.error.oauth_error.status_code == 401


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_malformed_json():
    respx.get(PROFILE_URL).mock(return_value=Response(200, text="<html>nope</html>"))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("t")

    assert result.profile is None
    assert isinstance(result.error, json.JSONDecodeError)


@pytest.mark.asyncio
@respx.mock
async def test_user_profile_non_object_json():
    respx.get(PROFILE_URL).mock(return_value=Response(200, json=["a", "b"]))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("t")

    assert isinstance(result.error, ProfileFormatError)


def _mock_token(**payload):
    body = {"access_token": "at-1", "refresh_token": "rt-1", "token_type": "Bearer", "expires_in": 3600}
    body.update(payload)
    return respx.post(TOKEN_URL).mock(return_value=Response(200, json=body))


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_runs_verify():
    token_route = _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(200, json={"id": "42", "name": "Ada", "email": "a@x.com"}))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.authenticate("code-1")

    assert result.ok
    assert result.user == {"id": "42", "access_token": "at-1", "refresh_token": "rt-1"}
    form = parse_qs(token_route.calls.last.request.content.decode())
    assert form["grant_type"] == ["authorization_code"]
    assert form["code"] == ["code-1"]
    assert form["redirect_uri"] == [CALLBACK]
    assert form["client_secret"] == ["shhh-its-a-secret"]


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_accepts_async_verify():
    _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(200, json={"id": "42", "name": "Ada"}))

    async def verify(access_token, refresh_token, profile):
        return profile.display_name

    result = await ProjectSquaredStrategy(_options(), verify).authenticate("code-1")

    assert result.user == "Ada"


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_rejected_by_verify():
    _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(200, json={"id": "42", "name": "Ada"}))

    result = await ProjectSquaredStrategy(_options(), lambda *_: False).authenticate("code-1")

    assert not result.ok
    assert result.error is None
    assert result.info


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_verify_error():
    _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(200, json={"id": "42", "name": "Ada"}))

    def verify(*_):
        raise LookupError("user store unavailable")

    result = await ProjectSquaredStrategy(_options(), verify).authenticate("code-1")

    assert isinstance(result.error, LookupError)


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_token_error():
    respx.post(TOKEN_URL).mock(
        return_value=Response(400, json={"error": "invalid_grant", "error_description": "Code expired"})
    )
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.authenticate("stale")

    assert isinstance(result.error, InternalOAuthError)
    assert result.error.args[0] == "failed to obtain access token"
    assert result.error.oauth_error.error == "invalid_grant"


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_profile_error():
    _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(502, text="bad gateway"))
    calls = []

    result = await ProjectSquaredStrategy(_options(), lambda *a: calls.append(a)).authenticate("code-1")

    assert isinstance(result.error, InternalOAuthError)
    assert calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        '{"id": ' + "9" * 5000 + "}",
        "[" * 100000 + "]" * 100000,
    ],
    ids=["oversized-integer", "deep-nesting"],
)
@respx.mock
async def test_user_profile_undecodable_body_is_an_error_result(body):
    respx.get(PROFILE_URL).mock(return_value=Response(200, text=body))
    strategy = ProjectSquaredStrategy(_options(), _verify)

    result = await strategy.user_profile("t")

    assert result.profile is None
    assert isinstance(result.error, (ValueError, RecursionError))


@pytest.mark.asyncio
@respx.mock
async def test_authenticate_undecodable_profile_is_an_error_result():
    _mock_token()
    respx.get(PROFILE_URL).mock(return_value=Response(200, text='{"id": ' + "9" * 5000 + "}"))

    result = await ProjectSquaredStrategy(_options(), _verify).authenticate("code-1")

    assert isinstance(result.error, ValueError)
    assert result.user is None


def test_profile_result_unwrap_returns_profile():
    profile = build_profile("{}", {"id": "1", "name": "Ada"})
    assert ProfileResult(profile=profile).unwrap() is profile
