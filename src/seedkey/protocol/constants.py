from __future__ import annotations
from typing import Literal

SDK_VERSION = "0.0.1"

EXTENSION_DOWNLOAD_URL = ""

# Requests and responses travel on distinct topics so a peer never reads its own request back.
REQUEST_EVENT = "seedkey:v1:request"
RESPONSE_EVENT = "seedkey:v1:response"
TOPICS = {REQUEST_EVENT, RESPONSE_EVENT}

REQUEST_TYPE = "SEEDKEY_REQUEST"
RESPONSE_TYPE = "SEEDKEY_RESPONSE"

SeedKeyAction = Literal[
    "check_available",
    "is_initialized",
    "get_public_key",
    "sign_challenge",
    "sign_message",
]

ChallengeAction = Literal["register", "authenticate"]

DEFAULT_TIMEOUT_S = 60.0
STATUS_TIMEOUT_S = 3.0
HTTP_TIMEOUT_S = 30.0

CHALLENGE_PATH = "/api/v1/seedkey/challenge"
REGISTER_PATH = "/api/v1/seedkey/register"
VERIFY_PATH = "/api/v1/seedkey/verify"
USER_PATH = "/api/v1/seedkey/user"
LOGOUT_PATH = "/api/v1/seedkey/logout"
REFRESH_PATH = "/api/v1/seedkey/refresh"

SESSION_EXPIRY_BUFFER_MS = 5 * 60 * 1000

MAX_MSG_BYTES = 64 * 1024
MAX_JSON_DEPTH = 12
MAX_JSON_KEYS = 100
MAX_CONNECTIONS_PER_IP = 10
