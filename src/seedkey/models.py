"""Wire and domain models shared by the custodian channel and the backend client.

Field names are snake_case in Python and camelCase on the wire. Backend
replies are read permissively: a missing field comes back as None.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Challenges travel as the backend's own dict; the client never rebuilds one.
ChallengePayload = Dict[str, Any]


class WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Challenge(WireModel):
    """Read-only view over a challenge payload, for callers that want attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="allow")

    nonce: Optional[str] = None
    timestamp: Optional[Union[int, float]] = None
    domain: Optional[str] = None
    action: Optional[str] = None
    expires_at: Optional[Union[int, float]] = None


class ChallengeResponse(WireModel):
    challenge: Optional[ChallengePayload] = None
    challenge_id: Optional[str] = None

    def view(self) -> Challenge:
        return Challenge.model_validate(self.challenge or {})


class TokenInfo(WireModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None


class UserInfo(WireModel):
    id: Optional[str] = None
    public_key: Optional[str] = None
    created_at: Optional[Union[str, int]] = None
    last_login: Optional[Union[str, int]] = None


class AuthResult(WireModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    success: bool = False
    action: Optional[str] = None
    user: Optional[UserInfo] = None
    token: Optional[TokenInfo] = None


class PublicKeyInfo(WireModel):
    id: Optional[str] = None
    public_key: Optional[str] = None
    device_name: Optional[str] = None
    added_at: Optional[Union[str, int]] = None
    last_used: Optional[Union[str, int]] = None


class UserProfile(WireModel):
    id: Optional[str] = None
    public_key: Optional[PublicKeyInfo] = None
    created_at: Optional[Union[str, int]] = None


class ExtensionStatus(WireModel):
    installed: bool
    initialized: bool
    download_url: Optional[str] = None


class PublicKeyResult(WireModel):
    public_key: str
    domain: Optional[str] = None


class SignChallengeResult(WireModel):
    signature: str
    public_key: Optional[str] = None


class SignMessageResult(WireModel):
    signature: str
    public_key: Optional[str] = None
    message: Optional[str] = None


class DeviceMetadata(WireModel):
    device_name: Optional[str] = None


class AuthOptions(WireModel):
    metadata: Optional[DeviceMetadata] = None

    @classmethod
    def for_device(cls, device_name: str) -> "AuthOptions":
        return cls(metadata=DeviceMetadata(device_name=device_name))
