"""
patterns.py
===========
Biblioteca de padrões de URL usada por todas as superfícies de extração.

Reconhece (sem diferenciar maiúsculas de minúsculas):
- Playlists HLS (.m3u8) e manifestos DASH (.mpd).
- Segmentos de transporte (.ts) e de áudio (.aac).
- URLs blob: e WebSocket (ws:// e wss://).
- URLs absolutas com as extensões acima antes da query string.
- URLs "tokenizadas" (token=, key= ou auth= na query string).
"""

import re
from typing import Iterable, List, Pattern, Tuple


# ---------------------------------------------------------------------------
# Constantes
# ---------------------------------------------------------------------------

STREAM_EXTENSIONS: Tuple[str, ...] = ("m3u8", "mpd", "ts", "aac")

# Prefixo das pseudo-URLs geradas pelo hook de RTCPeerConnection.
WEBRTC_PSEUDO_SCHEME = "webrtc-stream:"

_EXT = "|".join(STREAM_EXTENSIONS)

# Caracteres que nunca fazem parte de uma URL embutida em HTML/JS.
_URL_CHARS = r"[^\s\"'`<>]"

# Valor inteiro termina com uma extensão de stream (query opcional).
STREAM_PATH_RE: Pattern = re.compile(
    rf"^{_URL_CHARS}*\.(?:{_EXT})(?:\?{_URL_CHARS}*)?$", re.IGNORECASE
)

# Regras aplicadas sobre texto arbitrário. A ordem é significativa: define a
# ordem de inserção das correspondências.
SCAN_PATTERNS: Tuple[Tuple[str, Pattern], ...] = (
    ("stream", re.compile(
        rf"https?://{_URL_CHARS}+?\.(?:{_EXT})(?![a-z0-9]){_URL_CHARS}*", re.IGNORECASE
    )),
    ("blob", re.compile(rf"blob:https?://{_URL_CHARS}+", re.IGNORECASE)),
    ("websocket", re.compile(rf"wss?://{_URL_CHARS}+", re.IGNORECASE)),
    ("tokenized", re.compile(
        rf"https?://[^\s\"'`<>?]+\?(?:{_URL_CHARS}*?&)?(?:token|key|auth)={_URL_CHARS}*",
        re.IGNORECASE,
    )),
)

# Literais entre aspas dentro de scripts (varredura secundária).
QUOTED_URL_RE: Pattern = re.compile(
    rf"[\"'`]((?:https?://[^\"'`]*\.(?:{_EXT})[^\"'`]*)"
    r"|(?:blob:https?://[^\"'`]+)"
    r"|(?:wss?://[^\"'`]+))[\"'`]",
    re.IGNORECASE,
)


# ---------------------------------------------------------------------------
# Funções de reconhecimento
# ---------------------------------------------------------------------------

def _unique(urls: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for url in urls:
        if url and url not in seen:
            seen.add(url)
            result.append(url)
    return result


def find_stream_urls(text: str) -> List[str]:
    """
    Aplica todas as regras de varredura sobre um texto e retorna as
    correspondências únicas, na ordem das regras e, dentro de cada regra, na
    ordem em que aparecem no texto.
    """
    if not text:
        return []
    found = []
    for _name, pattern in SCAN_PATTERNS:
        found.extend(match.group(0) for match in pattern.finditer(text))
    return _unique(found)


def find_quoted_urls(text: str) -> List[str]:
    """Retorna as URLs de stream encontradas entre aspas, sem as aspas."""
    if not text:
        return []
    return _unique(match.group(1) for match in QUOTED_URL_RE.finditer(text))


def is_stream_url(url: str) -> bool:
    """Retorna True se o valor inteiro tiver o formato de uma URL de stream."""
    if not url:
        return False
    return bool(STREAM_PATH_RE.match(url.strip()))


def matches_any(value: str) -> bool:
    """True se o valor casar com qualquer regra da biblioteca."""
    return is_stream_url(value) or bool(find_stream_urls(value))


def detect_format(url: str) -> str:
    """Detecta o formato do stream com base no esquema ou na extensão da URL."""
    url_lower = url.lower()
    if url_lower.startswith(WEBRTC_PSEUDO_SCHEME):
        return "webrtc"
    if url_lower.startswith("blob:"):
        return "blob"
    if url_lower.startswith(("ws://", "wss://")):
        return "websocket"

    path = url_lower.split("?", 1)[0]
    if path.endswith(".m3u8") or ".m3u8" in url_lower:
        return "hls"
    if path.endswith(".mpd") or ".mpd" in url_lower:
        return "dash"
    if path.endswith(".ts"):
        return "segment"
    if path.endswith(".aac"):
        return "audio"
    return "unknown"
