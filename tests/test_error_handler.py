import httpx
import litellm

from key_pool.error_handler import (
    get_retry_after,
    is_rate_limit_error,
    is_server_error,
    mask_credential,
)


MODEL = "gemini/gemini-1.5-flash"


class StatusError(Exception):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


def test_classifies_litellm_errors() -> None:
    rate_limited = litellm.RateLimitError(message="slow down", llm_provider="gemini", model=MODEL)
    unavailable = litellm.ServiceUnavailableError(message="busy", llm_provider="gemini", model=MODEL)

    assert is_rate_limit_error(rate_limited)
    assert not is_server_error(rate_limited)
    assert is_server_error(unavailable)
    assert not is_rate_limit_error(unavailable)


def test_plain_429_counts_as_rate_limit() -> None:
    assert is_rate_limit_error(StatusError(429))
    assert not is_rate_limit_error(StatusError(500))
    assert not is_rate_limit_error(ValueError("nope"))


def test_retry_after_header_wins() -> None:
    response = httpx.Response(
        status_code=429,
        headers={"Retry-After": "12"},
        request=httpx.Request("POST", "https://example.invalid"),
    )
    error = litellm.RateLimitError(
        message='"retryDelay": "48s"', llm_provider="gemini", model=MODEL, response=response
    )

    assert get_retry_after(error) == 12


def test_retry_delay_parsed_from_message() -> None:
    assert get_retry_after(Exception('{"retryDelay": "48s"}')) == 48
    assert get_retry_after(Exception("retry_delay { seconds: 7 }")) == 7
    assert get_retry_after(Exception("Please wait 20 seconds and try again")) == 20
    assert get_retry_after(Exception("quota exceeded")) is None


def test_mask_credential() -> None:
    assert mask_credential("sk-1234567890abcdef") == "...abcdef"
    assert mask_credential("") == "<none>"
    assert mask_credential(None) == "<none>"
