import pytest

import seedkey
from seedkey.registry import get_api_client, get_seedkey, reset_api_client, reset_seedkey


@pytest.fixture(autouse=True)
def clean_registry():
    reset_seedkey()
    reset_api_client()
    yield
    reset_seedkey()
    reset_api_client()


class TestSeedKeyRegistry:
    def test_get_before_init_raises(self):
        with pytest.raises(RuntimeError):
            get_seedkey()

    def test_first_options_win(self, options):
        first = get_seedkey(options)
        again = get_seedkey(options.model_copy(update={"backend_url": "https://other.example.com"}))

        assert again is first
        assert get_seedkey() is first
        assert first.options.backend_url == "https://api.example.com"

    def test_reset_destroys_instance(self, options):
        first = get_seedkey(options)

        reset_seedkey()

        assert first.transport.destroyed
        assert get_seedkey(options) is not first


class TestApiRegistry:
    def test_get_before_init_raises(self):
        with pytest.raises(RuntimeError):
            get_api_client()

    def test_reuses_instance(self):
        client = get_api_client("https://api.example.com")

        assert get_api_client() is client
        reset_api_client()
        assert get_api_client("https://api.example.com") is not client


def test_event_names():
    assert seedkey.get_request_event_name() == "seedkey:v1:request"
    assert seedkey.get_response_event_name() == "seedkey:v1:response"
