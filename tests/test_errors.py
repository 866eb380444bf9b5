import pytest

from seedkey.errors import (
    ErrorCode,
    ExtensionNotConfiguredError,
    ExtensionNotFoundError,
    SeedKeyError,
    destroyed_error,
    normalize_code,
)
from seedkey.protocol.constants import EXTENSION_DOWNLOAD_URL


class TestErrorCode:
    def test_codes_compare_as_strings(self):
        assert ErrorCode.USER_NOT_FOUND == "USER_NOT_FOUND"
        assert str(ErrorCode.LOCKED) == "LOCKED"

    @pytest.mark.parametrize("raw, expected", [
        ("USER_EXISTS", ErrorCode.USER_EXISTS),
        (None, ErrorCode.SERVER_ERROR),
        ("", ErrorCode.SERVER_ERROR),
        (ErrorCode.TIMEOUT, ErrorCode.TIMEOUT),
        ("SOMETHING_NEW", "SOMETHING_NEW"),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_code(raw) == expected


class TestSeedKeyError:
    def test_fields(self):
        err = SeedKeyError("INVALID_SIGNATURE", "bad sig", hint="retry")

        assert err.code is ErrorCode.INVALID_SIGNATURE
        assert err.message == "bad sig"
        assert err.hint == "retry"
        assert err.download_url is None
        assert str(err) == "bad sig"

    def test_to_dict_omits_absent_fields(self):
        assert SeedKeyError(ErrorCode.NETWORK_ERROR, "down").to_dict() == {
            "code": "NETWORK_ERROR",
            "message": "down",
        }

    def test_extension_not_found(self):
        err = ExtensionNotFoundError()

        assert isinstance(err, SeedKeyError)
        assert err.code is ErrorCode.EXTENSION_NOT_FOUND
        assert err.hint == "Install SeedKey browser extension"
        assert err.to_dict()["downloadUrl"] == EXTENSION_DOWNLOAD_URL

    def test_extension_not_configured(self):
        err = ExtensionNotConfiguredError()

        assert err.code is ErrorCode.EXTENSION_NOT_CONFIGURED
        assert err.download_url is None

    def test_destroyed(self):
        err = destroyed_error()

        assert err.code is ErrorCode.TIMEOUT
        assert err.message == "SDK destroyed"
