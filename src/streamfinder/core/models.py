"""
models.py
=========
Estruturas de dados trocadas entre os componentes do extrator: requisição,
cookies, registros de diagnóstico e o resultado final.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

import validators

from streamfinder.core.candidates import CandidateURL
from streamfinder.core.errors import ValidationError


# Hosts bloqueados quando block_private_hosts=True (prevenção de SSRF)
PRIVATE_HOST_MARKERS = ["localhost", "127.0.0.1", "0.0.0.0", "192.168.", "10.", "172.16."]

VALID_SAMESITE = ("Strict", "Lax", "None")

EMPTY_RESULT_ERROR = "No streaming links found on this page"
EMPTY_RESULT_SUGGESTION = (
    "The page might use protected streams, require specific interactions, or load "
    "streams in uncaptured iframes. Check debug.html, network.json, and iframes.json."
)


class ExtractionStage(str, Enum):
    """Estágios de uma extração, na ordem em que são executados."""
    INIT = "init"
    CONFIGURING = "configuring"
    NAVIGATING = "navigating"
    WAITING_FOR_MEDIA = "waiting-for-media"
    INTERACTING = "interacting"
    CRAWLING_IFRAMES = "crawling-iframes"
    COLLECTING = "collecting"
    VERIFYING = "verifying"
    CLOSED = "closed"


@dataclass
class StageTimeouts:
    """Prazos fixos de cada estágio (ms para o navegador, segundos para esperas)."""
    navigation: int = 45000
    media_wait: int = 15000
    iframe_navigation: int = 30000
    interaction_settle: float = 10.0
    network_settle: float = 5.0
    verification: float = 5.0


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

def _as_bool(value) -> bool:
    return str(value).lower() == "true"


@dataclass(frozen=True)
class Cookie:
    """Cookie usado para pré-carregar a sessão do navegador."""
    name: str
    value: str
    domain: Optional[str] = None
    path: Optional[str] = None
    url: Optional[str] = None
    expires: Optional[float] = None
    http_only: Optional[bool] = None
    secure: Optional[bool] = None
    same_site: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Cookie":
        """Cria um Cookie a partir de um dicionário, limpando campos inválidos."""
        if not isinstance(data, dict):
            raise ValidationError(f"Invalid cookie: {data!r}", error="Invalid cookie")
        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ValidationError("Cookie without a name.", error="Invalid cookie")

        same_site = data.get("sameSite")
        if same_site not in VALID_SAMESITE:
            same_site = None

        expires = data.get("expires", data.get("expirationDate"))
        try:
            expires = float(expires) if expires is not None else None
        except (TypeError, ValueError):
            expires = None

        return cls(
            name=name,
            value=str(data.get("value", "")),
            domain=data.get("domain") or None,
            path=data.get("path") or None,
            url=data.get("url") or None,
            expires=expires,
            http_only=_as_bool(data["httpOnly"]) if "httpOnly" in data else None,
            secure=_as_bool(data["secure"]) if "secure" in data else None,
            same_site=same_site,
        )

    def to_playwright(self, default_url: str) -> Dict[str, Any]:
        """
        Converte para o formato aceito por BrowserContext.add_cookies().
        O Playwright exige url ou domain+path; sem nenhum dos dois, o cookie é
        associado à URL alvo.
        """
        cookie: Dict[str, Any] = {"name": self.name, "value": self.value}
        if self.domain:
            cookie["domain"] = self.domain
            cookie["path"] = self.path or "/"
        else:
            cookie["url"] = self.url or default_url
        if self.expires is not None:
            cookie["expires"] = self.expires
        if self.http_only is not None:
            cookie["httpOnly"] = self.http_only
        if self.secure is not None:
            cookie["secure"] = self.secure
        if self.same_site:
            cookie["sameSite"] = self.same_site
        return cookie


# ---------------------------------------------------------------------------
# Requisição
# ---------------------------------------------------------------------------

def validate_url(url, block_private_hosts: bool = True) -> bool:
    """Valida se a URL é absoluta, http(s) e, opcionalmente, não aponta para a rede local."""
    if not isinstance(url, str) or not url:
        return False
    if not validators.url(url):
        return False
    if not url.lower().startswith(("http://", "https://")):
        return False
    if block_private_hosts:
        parsed_url = re.search(r"https?://([^/:?#]+)", url, re.IGNORECASE)
        if parsed_url:
            host = parsed_url.group(1).lower()
            if any(host == marker or host.startswith(marker) for marker in PRIVATE_HOST_MARKERS):
                return False
    return True


@dataclass(frozen=True)
class ExtractionRequest:
    """URL alvo e cookies opcionais. Imutável depois de aceita."""
    url: str
    cookies: Tuple[Cookie, ...] = ()

    @classmethod
    def create(
        cls,
        url,
        cookies: Optional[Iterable[Any]] = None,
        block_private_hosts: bool = True,
    ) -> "ExtractionRequest":
        """Valida a entrada e constrói a requisição. Levanta ValidationError."""
        if not url:
            raise ValidationError("URL is required", error="URL is required")
        if not validate_url(url, block_private_hosts=block_private_hosts):
            raise ValidationError(f"Invalid or unsafe URL: {url}")

        parsed: List[Cookie] = []
        for cookie in cookies or []:
            parsed.append(cookie if isinstance(cookie, Cookie) else Cookie.from_dict(cookie))
        return cls(url=url, cookies=tuple(parsed))

    def playwright_cookies(self) -> List[Dict[str, Any]]:
        return [cookie.to_playwright(self.url) for cookie in self.cookies]


# ---------------------------------------------------------------------------
# Diagnóstico
# ---------------------------------------------------------------------------

@dataclass
class NetworkLogEntry:
    """Registro de uma resposta observada (classificada ou não)."""
    url: str
    resource_type: str
    headers: Dict[str, str]
    content_type: str
    status: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "type": self.resource_type,
            "headers": self.headers,
            "contentType": self.content_type,
            "status": self.status,
        }


@dataclass
class IframeRecord:
    """Um iframe encontrado durante a varredura (profundidade a partir de 1)."""
    depth: int
    src: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"depth": self.depth, "src": self.src}


# ---------------------------------------------------------------------------
# Resultado
# ---------------------------------------------------------------------------

@dataclass
class ExtractionResult:
    """
    Resultado de uma extração, produzido tanto no sucesso quanto quando nada
    é encontrado. A primeira candidata, em ordem de inserção, é a principal.
    """
    candidates: List[CandidateURL]
    html: str = ""
    network_log: List[NetworkLogEntry] = field(default_factory=list)
    iframe_records: List[IframeRecord] = field(default_factory=list)

    @property
    def all_urls(self) -> List[str]:
        return [c.url for c in self.candidates]

    @property
    def verified_urls(self) -> List[str]:
        return [c.url for c in self.candidates if c.verified]

    @property
    def primary_url(self) -> Optional[str]:
        return self.candidates[0].url if self.candidates else None

    @property
    def count(self) -> int:
        return len(self.candidates)

    @property
    def found(self) -> bool:
        return bool(self.candidates)

    @property
    def content_length(self) -> int:
        return len(self.html)

    @property
    def html_preview(self) -> str:
        return self.html[:200]

    @property
    def status_code(self) -> int:
        return 200 if self.found else 404

    def to_dict(self) -> Dict[str, Any]:
        """Serializa no contrato de resultado (sucesso ou "nada encontrado")."""
        if self.found:
            return {
                "success": True,
                "primaryUrl": self.primary_url,
                "allUrls": self.all_urls,
                "count": self.count,
                "contentLength": self.content_length,
            }
        return {
            "error": EMPTY_RESULT_ERROR,
            "suggestion": EMPTY_RESULT_SUGGESTION,
            "details": f"Analyzed {self.content_length} characters of rendered HTML content.",
            "htmlPreview": self.html_preview,
            "networkLogCount": len(self.network_log),
            "iframeSources": [record.to_dict() for record in self.iframe_records],
        }
