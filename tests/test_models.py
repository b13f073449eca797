"""
Testes para os módulos streamfinder.core.models e streamfinder.core.errors.
"""

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from streamfinder.core.candidates import CandidateURL, Provenance
from streamfinder.core.errors import (
    ExtractionTimeout,
    InternalError,
    NetworkError,
    ValidationError,
    classify_navigation_error,
)
from streamfinder.core.models import (
    Cookie,
    ExtractionRequest,
    ExtractionResult,
    IframeRecord,
    NetworkLogEntry,
    validate_url,
)


# ---------------------------------------------------------------------------
# Validação de URL
# ---------------------------------------------------------------------------

def test_validate_url_valid():
    assert validate_url("https://google.com") is True
    assert validate_url("http://exemplo.com/video") is True


def test_validate_url_invalid():
    assert validate_url("not a url") is False
    assert validate_url("not-a-url") is False
    assert validate_url("ftp://server.com") is False
    assert validate_url(None) is False


def test_validate_url_ssrf_prevention():
    assert validate_url("http://localhost") is False
    assert validate_url("http://127.0.0.1") is False
    assert validate_url("http://192.168.1.1") is False
    assert validate_url("http://10.0.0.1") is False
    assert validate_url("http://172.16.0.1") is False


def test_validate_url_private_hosts_allowed_when_disabled():
    assert validate_url("http://192.168.1.1/live", block_private_hosts=False) is True


def test_request_create_rejects_missing_url():
    with pytest.raises(ValidationError) as info:
        ExtractionRequest.create("")
    assert info.value.status_code == 400
    assert info.value.error == "URL is required"


def test_request_create_rejects_invalid_url():
    with pytest.raises(ValidationError) as info:
        ExtractionRequest.create("not a url")
    assert info.value.to_dict()["error"] == "Invalid URL format"


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

def test_cookie_from_dict_cleans_fields():
    cookie = Cookie.from_dict({
        "name": "sid", "value": "1", "domain": ".example.com", "path": "/",
        "sameSite": "no_restriction", "httpOnly": "TRUE", "secure": False,
    })
    assert cookie.same_site is None
    assert cookie.http_only is True
    assert cookie.secure is False


def test_cookie_without_domain_is_bound_to_target_url():
    request = ExtractionRequest.create("https://example.com/watch", [{"name": "a", "value": "b"}])
    assert request.playwright_cookies() == [
        {"name": "a", "value": "b", "url": "https://example.com/watch"}
    ]


def test_cookie_with_domain_gets_default_path():
    cookie = Cookie.from_dict({"name": "a", "value": "b", "domain": "example.com"})
    assert cookie.to_playwright("https://example.com/") == {
        "name": "a", "value": "b", "domain": "example.com", "path": "/",
    }


def test_cookie_without_name_is_rejected():
    with pytest.raises(ValidationError):
        ExtractionRequest.create("https://example.com/", [{"value": "x"}])


def test_request_is_immutable():
    request = ExtractionRequest.create("https://example.com/")
    with pytest.raises(Exception):
        request.url = "https://other.example.com/"


# ---------------------------------------------------------------------------
# Resultado
# ---------------------------------------------------------------------------

def test_result_success_shape():
    result = ExtractionResult(
        candidates=[
            CandidateURL("https://cdn.example.com/a.m3u8", Provenance.NETWORK_RESPONSE, verified=True),
            CandidateURL("webrtc-stream:x", Provenance.RUNTIME_HOOK),
        ],
        html="<html></html>",
    )
    assert result.status_code == 200
    assert result.to_dict() == {
        "success": True,
        "primaryUrl": "https://cdn.example.com/a.m3u8",
        "allUrls": ["https://cdn.example.com/a.m3u8", "webrtc-stream:x"],
        "count": 2,
        "contentLength": 13,
    }
    assert result.verified_urls == ["https://cdn.example.com/a.m3u8"]


def test_result_empty_shape():
    html = "<html>" + "x" * 300 + "</html>"
    result = ExtractionResult(
        candidates=[],
        html=html,
        network_log=[NetworkLogEntry("https://example.com/", "document", {}, "text/html")],
        iframe_records=[IframeRecord(1, None)],
    )
    payload = result.to_dict()
    assert result.found is False
    assert result.status_code == 404
    assert "count" not in payload
    assert payload["error"] == "No streaming links found on this page"
    assert payload["details"] == f"Analyzed {len(html)} characters of rendered HTML content."
    assert payload["htmlPreview"] == html[:200]
    assert payload["networkLogCount"] == 1
    assert payload["iframeSources"] == [{"depth": 1, "src": None}]


# ---------------------------------------------------------------------------
# Classificação de erros de navegação
# ---------------------------------------------------------------------------

def test_classify_dns_failure():
    error = classify_navigation_error(PlaywrightError("net::ERR_NAME_NOT_RESOLVED at https://x.invalid/"))
    assert isinstance(error, NetworkError)
    assert error.error_code == "ENOTFOUND"
    assert error.status_code == 400


def test_classify_connection_refused():
    error = classify_navigation_error(PlaywrightError("net::ERR_CONNECTION_REFUSED at http://example.com/"))
    assert isinstance(error, NetworkError)
    assert error.to_dict() == {
        "error": "Connection refused",
        "details": "Server may be down.",
        "errorCode": "ECONNREFUSED",
    }


def test_classify_timeout():
    error = classify_navigation_error(PlaywrightTimeoutError("Timeout 45000ms exceeded."))
    assert isinstance(error, ExtractionTimeout)
    assert error.status_code == 408
    assert error.error_code == "ETIMEDOUT"


def test_classify_unknown_error():
    error = classify_navigation_error(RuntimeError("boom"))
    assert isinstance(error, InternalError)
    assert error.details == "Error: boom"
    assert error.error_code == "UNKNOWN"
