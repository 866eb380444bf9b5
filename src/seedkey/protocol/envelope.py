from __future__ import annotations
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .constants import REQUEST_TYPE, RESPONSE_TYPE, SDK_VERSION, SeedKeyAction


class EnvelopeError(BaseModel):
    code: Optional[str] = None
    message: Optional[str] = None


class SeedKeyRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str = REQUEST_TYPE
    version: str = SDK_VERSION
    action: SeedKeyAction
    request_id: str
    origin: str
    payload: Optional[Dict[str, Any]] = None


class SeedKeyResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: str = RESPONSE_TYPE
    version: str = SDK_VERSION
    request_id: str
    success: bool
    result: Any = None
    error: Optional[EnvelopeError] = None


def build_request(action: SeedKeyAction, request_id: str, origin: str, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    req = SeedKeyRequest(action=action, request_id=request_id, origin=origin)
    envelope = req.model_dump(by_alias=True, exclude_none=True)
    # payload goes out as given; nulls inside it are data
    if payload is not None:
        envelope["payload"] = payload
    return envelope


def build_response(request_id: str, result: Any = None, error_code: Optional[str] = None, error_message: Optional[str] = None) -> Dict[str, Any]:
    if error_code is None:
        envelope = SeedKeyResponse(request_id=request_id, success=True).model_dump(by_alias=True, exclude_none=True)
        if result is not None:
            envelope["result"] = result
        return envelope
    resp = SeedKeyResponse(
        request_id=request_id,
        success=False,
        error=EnvelopeError(code=error_code, message=error_message),
    )
    return resp.model_dump(by_alias=True, exclude_none=True)


def parse_request(detail: Any) -> Optional[SeedKeyRequest]:
    if not isinstance(detail, dict) or detail.get("type") != REQUEST_TYPE:
        return None
    try:
        return SeedKeyRequest.model_validate(detail)
    except ValidationError:
        return None


def parse_response(detail: Any) -> Optional[SeedKeyResponse]:
    """Return the response envelope, or None for anything not shaped like one."""
    if not isinstance(detail, dict) or detail.get("type") != RESPONSE_TYPE:
        return None
    try:
        return SeedKeyResponse.model_validate(detail)
    except ValidationError:
        return None
