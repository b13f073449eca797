"""
Testes para a interface de linha de comando e o gravador de diagnóstico.
"""

import json

from streamfinder.cli.diagnostics import write_diagnostics
from streamfinder.cli.main import EXIT_ERROR, build_parser, load_cookies_file, main
from streamfinder.core.candidates import CandidateURL, Provenance
from streamfinder.core.models import ExtractionResult, IframeRecord, NetworkLogEntry


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

def test_load_cookies_json_list(tmp_path):
    path = tmp_path / "cookies.json"
    path.write_text(json.dumps([{"name": "sid", "value": "abc", "domain": ".example.com"}]), encoding="utf-8")
    cookies = load_cookies_file(str(path))
    assert cookies == [{"name": "sid", "value": "abc", "domain": ".example.com"}]


def test_load_cookies_json_wrapped(tmp_path):
    path = tmp_path / "cookies.json"
    path.write_text(json.dumps({"cookies": [{"name": "a", "value": "1"}]}), encoding="utf-8")
    assert load_cookies_file(str(path)) == [{"name": "a", "value": "1"}]


def test_load_cookies_netscape(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text(
        "# Netscape HTTP Cookie File\n"
        "\n"
        ".example.com\tTRUE\t/\tTRUE\t1893456000\tsid\tabc\n"
        "linha inválida\n",
        encoding="utf-8",
    )
    cookies = load_cookies_file(str(path))
    assert cookies == [{
        "name": "sid",
        "value": "abc",
        "domain": ".example.com",
        "path": "/",
        "expires": 1893456000,
        "httpOnly": False,
        "secure": True,
    }]


def test_load_cookies_netscape_session_cookie(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text(".example.com\tTRUE\t/\tFALSE\t0\tsid\tabc\n", encoding="utf-8")
    cookie = load_cookies_file(str(path))[0]
    # expiração 0 é cookie de sessão; a flag de subdomínios não é httpOnly
    assert cookie["expires"] == -1
    assert cookie["httpOnly"] is False
    assert cookie["secure"] is False


def test_load_cookies_netscape_http_only_prefix(tmp_path):
    path = tmp_path / "cookies.txt"
    path.write_text(
        "#HttpOnly_.example.com\tTRUE\t/\tTRUE\t1893456000\ttoken\txyz\n"
        "#HttpOnly_ comentário qualquer\n",
        encoding="utf-8",
    )
    cookies = load_cookies_file(str(path))
    assert len(cookies) == 1
    assert cookies[0]["domain"] == ".example.com"
    assert cookies[0]["name"] == "token"
    assert cookies[0]["httpOnly"] is True


def test_load_cookies_missing_file(tmp_path):
    assert load_cookies_file(str(tmp_path / "nao-existe.json")) == []
    assert load_cookies_file(None) == []


# ---------------------------------------------------------------------------
# Diagnóstico
# ---------------------------------------------------------------------------

def test_write_diagnostics(tmp_path):
    result = ExtractionResult(
        candidates=[CandidateURL("https://cdn.example.com/a.m3u8", Provenance.SCRIPT)],
        html="<html>ok</html>",
        network_log=[NetworkLogEntry("https://cdn.example.com/a.m3u8", "media", {}, "", 200)],
        iframe_records=[IframeRecord(depth=1, src=None)],
    )
    paths = write_diagnostics(result, str(tmp_path / "debug"))

    with open(paths["html"], encoding="utf-8") as f:
        assert f.read() == "<html>ok</html>"
    with open(paths["network"], encoding="utf-8") as f:
        assert json.load(f)[0]["url"] == "https://cdn.example.com/a.m3u8"
    with open(paths["iframes"], encoding="utf-8") as f:
        assert json.load(f) == [{"depth": 1, "src": None}]


# ---------------------------------------------------------------------------
# Argumentos
# ---------------------------------------------------------------------------

def test_parser_defaults():
    args = build_parser().parse_args(["https://exemplo.com/video"])
    assert args.url == "https://exemplo.com/video"
    assert args.browser == "chromium"
    assert args.headless is True
    assert args.timeout == 45000
    assert args.max_depth == 5
    assert args.deadline is None
    assert args.block_private_hosts is True
    assert args.json is False


def test_parser_flags():
    args = build_parser().parse_args([
        "https://exemplo.com/live", "--no-headless", "--allow-private-hosts",
        "--deadline", "30", "--json", "--browser", "firefox",
    ])
    assert args.headless is False
    assert args.block_private_hosts is False
    assert args.deadline == 30.0
    assert args.json is True
    assert args.browser == "firefox"


def test_main_without_url_returns_error():
    assert main([]) == EXIT_ERROR
