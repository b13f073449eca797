"""
streamfinder.core
=================
Módulos principais do streamfinder.

- extractor: orquestração da extração via Playwright.
- session: ciclo de vida da sessão do navegador.
- hooks: hooks de runtime (WebRTC, WebSocket, URLs blob).
- network_capture: interceptação e classificação do tráfego de rede.
- content: varredura do HTML renderizado.
- iframes: varredura recursiva de iframes.
- verifier: verificação de vida das candidatas.
- patterns: biblioteca de padrões de URL.
"""

from streamfinder.core.candidates import CandidateSet, CandidateURL, Provenance, aggregate
from streamfinder.core.content import extract_stream_urls, scan_document
from streamfinder.core.errors import (
    ExtractionError,
    ExtractionTimeout,
    InternalError,
    NetworkError,
    ValidationError,
)
from streamfinder.core.extractor import StreamExtractor
from streamfinder.core.models import (
    Cookie,
    ExtractionRequest,
    ExtractionResult,
    IframeRecord,
    NetworkLogEntry,
    StageTimeouts,
)
from streamfinder.core.patterns import detect_format, find_stream_urls, is_stream_url

__all__ = [
    "StreamExtractor",
    "StageTimeouts",
    "ExtractionRequest",
    "ExtractionResult",
    "Cookie",
    "IframeRecord",
    "NetworkLogEntry",
    "CandidateSet",
    "CandidateURL",
    "Provenance",
    "aggregate",
    "scan_document",
    "extract_stream_urls",
    "find_stream_urls",
    "is_stream_url",
    "detect_format",
    "ExtractionError",
    "ValidationError",
    "NetworkError",
    "ExtractionTimeout",
    "InternalError",
]
