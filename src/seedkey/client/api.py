"""Stateless binding to the SeedKey backend REST contract."""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..errors import ErrorCode, SeedKeyError
from ..logs import get_logger
from ..models import AuthResult, ChallengePayload, ChallengeResponse, TokenInfo, UserProfile
from ..protocol.constants import (
    CHALLENGE_PATH,
    HTTP_TIMEOUT_S,
    LOGOUT_PATH,
    REFRESH_PATH,
    REGISTER_PATH,
    SDK_VERSION,
    USER_PATH,
    VERIFY_PATH,
    ChallengeAction,
)
from .device import default_user_agent

logger = get_logger("API")

M = TypeVar("M", bound=BaseModel)


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _compact(body: Dict[str, Any]) -> Dict[str, Any]:
    # absent values are omitted, never sent as null
    return {k: v for k, v in body.items() if v is not None}


def decode_payload(model: Type[M], data: Any, source: str, message: str = "Malformed response from server") -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.error("malformed_response", source=source, errors=e.error_count())
        raise SeedKeyError(ErrorCode.SERVER_ERROR, message) from e


class ApiClient:
    """One method per endpoint. No retries, no caching, no token storage."""

    def __init__(
        self,
        base_url: str,
        timeout: float = HTTP_TIMEOUT_S,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(timeout=timeout)
        logger.info("api_client_initialized", base_url=self.base_url)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        default_message: str,
        body: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": f"seedkey-py/{SDK_VERSION} {default_user_agent()}",
        }
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        logger.debug("http_request", method=method, path=path)
        try:
            response = await self.http.request(method, url, json=body, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as e:
            logger.error("network_error", path=path, error=str(e))
            raise SeedKeyError(ErrorCode.NETWORK_ERROR, f"Network error: {e}") from e

        data = _json_or_empty(response)
        if not response.is_success:
            error = SeedKeyError(
                data.get("error") or ErrorCode.SERVER_ERROR,
                data.get("message") or default_message,
                data.get("hint"),
            )
            logger.error("http_error", path=path, status=response.status_code, code=str(error.code), message=error.message)
            raise error

        logger.debug("http_succeeded", method=method, path=path, status=response.status_code)
        return data

    async def request_challenge(self, public_key: str, action: ChallengeAction) -> ChallengeResponse:
        data = await self._request("POST", CHALLENGE_PATH, "Failed to request challenge", {"publicKey": public_key, "action": action})
        return decode_payload(ChallengeResponse, data, CHALLENGE_PATH)

    async def register(
        self,
        public_key: str,
        challenge: Optional[ChallengePayload],
        signature: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuthResult:
        body = _compact({"publicKey": public_key, "challenge": challenge, "signature": signature, "metadata": metadata})
        data = await self._request("POST", REGISTER_PATH, "Registration failed", body)
        return decode_payload(AuthResult, data, REGISTER_PATH)

    async def verify(
        self,
        challenge_id: Optional[str],
        challenge: Optional[ChallengePayload],
        signature: str,
        public_key: str,
    ) -> AuthResult:
        body = _compact({
            "challengeId": challenge_id,
            "challenge": challenge,
            "signature": signature,
            "publicKey": public_key,
        })
        data = await self._request("POST", VERIFY_PATH, "Authentication failed", body)
        return decode_payload(AuthResult, data, VERIFY_PATH)

    async def get_user(self, access_token: str) -> Optional[UserProfile]:
        data = await self._request("GET", USER_PATH, "Failed to get user", token=access_token)
        user = data.get("user")
        if user is None:
            logger.warning("user_missing_in_response")
            return None
        profile = decode_payload(UserProfile, user, USER_PATH)
        logger.info("user_retrieved", user_id=profile.id)
        return profile

    async def logout(self, access_token: str) -> bool:
        data = await self._request("POST", LOGOUT_PATH, "Logout failed", {}, token=access_token)
        logger.info("logout_successful")
        return bool(data.get("success", True))

    async def refresh_token(self, refresh_token: str) -> TokenInfo:
        data = await self._request("POST", REFRESH_PATH, "Token refresh failed", {"refreshToken": refresh_token})
        tokens = decode_payload(TokenInfo, data, REFRESH_PATH)
        logger.info("token_refreshed", expires_in=tokens.expires_in)
        return tokens
