import pytest
from pydantic import ValidationError

from seedkey.client.device import device_name
from seedkey.config import SeedKeyOptions
from seedkey.protocol.constants import DEFAULT_TIMEOUT_S


class TestOptions:
    def test_defaults(self):
        options = SeedKeyOptions(backend_url="https://api.example.com/")

        assert options.backend_url == "https://api.example.com"
        assert options.timeout == DEFAULT_TIMEOUT_S
        assert options.domain == "localhost"
        assert options.debug is False

    def test_domain_from_origin(self):
        options = SeedKeyOptions(backend_url="https://api.example.com", origin="https://app.example.com:8443/x")

        assert options.domain == "app.example.com"

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            SeedKeyOptions(backend_url="https://api.example.com", timeout=0)

    def test_requires_backend_url(self):
        with pytest.raises(ValidationError):
            SeedKeyOptions()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("SEEDKEY_BACKEND_URL", "https://env.example.com")
        monkeypatch.setenv("SEEDKEY_TIMEOUT", "5")
        monkeypatch.setenv("SEEDKEY_ORIGIN", "https://site.example.com")
        monkeypatch.setenv("SEEDKEY_DEBUG", "true")

        options = SeedKeyOptions.from_env()

        assert options.backend_url == "https://env.example.com"
        assert options.timeout == 5.0
        assert options.domain == "site.example.com"
        assert options.debug is True

    def test_from_env_overrides_win(self, monkeypatch):
        monkeypatch.setenv("SEEDKEY_BACKEND_URL", "https://env.example.com")

        options = SeedKeyOptions.from_env(backend_url="https://flag.example.com", origin=None)

        assert options.backend_url == "https://flag.example.com"
        assert options.origin == "http://localhost"


class TestDeviceName:
    @pytest.mark.parametrize("ua, expected", [
        ("Mozilla/5.0 (Macintosh; Intel Mac OS X 14_0) AppleWebKit/605.1.15 Version/17.0 Safari/605.1.15",
         "Safari on macOS"),
        ("Mozilla/5.0 (X11; Linux x86_64; rv:120.0) Gecko/20100101 Firefox/120.0", "Firefox on Linux"),
        ("Mozilla/5.0 (Windows NT 10.0) AppleWebKit/537.36 Chrome/120.0 Safari/537.36", "Chrome on Windows"),
        ("curl/8.0", "Browser on Unknown"),
    ])
    def test_from_user_agent(self, ua, expected):
        assert device_name(ua) == expected

    def test_without_user_agent(self):
        assert " on " in device_name()
