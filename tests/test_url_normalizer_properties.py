"""
Property-based tests for domain URL normalization.

Uses Hypothesis for property-based testing to verify that only the hostname
survives normalization and that malformed input is rejected.
"""

import string

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_health.enums import UrlErrorCode
from domain_health.exceptions import InvalidUrlError
from domain_health.url_normalizer import UrlNormalizer, normalize_domain_url


def hostname_strategy() -> st.SearchStrategy[str]:
    """Generate plain ASCII hostnames, mixed case included."""
    label = st.text(
        alphabet=string.ascii_letters + string.digits,
        min_size=1,
        max_size=15,
    )
    tld = st.sampled_from(["com", "de", "net", "org", "io"])
    return st.builds(
        lambda labels, t: ".".join(labels + [t]),
        st.lists(label, min_size=1, max_size=3),
        tld,
    )


path_strategy = st.text(alphabet=string.ascii_lowercase + string.digits + "/-_", max_size=20)


class TestHostnameExtractionProperty:
    """
    Property 3: Normalization keeps exactly the hostname.
    """

    @given(
        host=hostname_strategy(),
        scheme=st.sampled_from(["", "http://", "https://", "ftp://"]),
        port=st.one_of(st.just(""), st.integers(min_value=1, max_value=65535).map(lambda p: f":{p}")),
        path=path_strategy,
    )
    @settings(max_examples=200)
    def test_scheme_port_and_path_are_dropped(
        self, host: str, scheme: str, port: str, path: str
    ) -> None:
        """
        *For any* hostname wrapped in an optional scheme, port and path, the
        normalized result SHALL be the hostname unchanged.
        """
        raw = f"{scheme}{host}{port}/{path}"
        assert normalize_domain_url(raw) == host

    @given(host=hostname_strategy())
    @settings(max_examples=100)
    def test_normalization_is_idempotent(self, host: str) -> None:
        once = normalize_domain_url(host)
        assert normalize_domain_url(once) == once

    def test_examples(self) -> None:
        assert normalize_domain_url("example.com") == "example.com"
        assert normalize_domain_url("https://www.example.com/path?q=1#frag") == "www.example.com"
        assert normalize_domain_url("  example.com  ") == "example.com"
        assert normalize_domain_url("user:pass@example.com:8080") == "example.com"
        assert normalize_domain_url("http://[::1]:8080/") == "[::1]"

    def test_case_is_preserved(self) -> None:
        assert normalize_domain_url("Example.COM") == "Example.COM"

    def test_non_ascii_host_is_idna_encoded(self) -> None:
        assert normalize_domain_url("bücher.de") == "xn--bcher-kva.de"

    def test_custom_default_scheme(self) -> None:
        assert UrlNormalizer(default_scheme="http").normalize("example.com/x") == "example.com"


class TestInvalidInputProperty:
    """
    Property 4: Input that cannot be parsed as a URL is rejected.
    """

    @given(raw=st.text(alphabet=" \t\n", max_size=10))
    @settings(max_examples=50)
    def test_blank_input_is_empty_error(self, raw: str) -> None:
        with pytest.raises(InvalidUrlError) as exc_info:
            normalize_domain_url(raw)
        assert exc_info.value.code == UrlErrorCode.EMPTY_INPUT.value

    @pytest.mark.parametrize("raw,code", [
        ("https://", UrlErrorCode.MISSING_HOST),
        ("http:///path", UrlErrorCode.MISSING_HOST),
        ("example.com:99999", UrlErrorCode.INVALID_PORT),
        ("example.com:abc", UrlErrorCode.INVALID_PORT),
        ("exa mple.com", UrlErrorCode.FORBIDDEN_CHARS),
        ("exa<mple.com", UrlErrorCode.FORBIDDEN_CHARS),
        ("http://[::1/", UrlErrorCode.MALFORMED),
    ])
    def test_rejected_examples(self, raw: str, code: UrlErrorCode) -> None:
        with pytest.raises(InvalidUrlError) as exc_info:
            normalize_domain_url(raw)
        assert exc_info.value.code == code.value
        assert exc_info.value.details["raw_input"] == raw
