"""
network_capture.py
==================
Interceptação e classificação do tráfego de rede durante a navegação.

Funcionalidades:
- Bloqueio de recursos sem valor para a extração (imagens, CSS, fontes).
- Classificação de respostas como stream pelo Content-Type (HLS, DASH,
  video/*, audio/*) ou pelo formato da URL.
- Leitura do corpo de respostas XHR/fetch e varredura com a biblioteca de
  padrões (URLs de manifesto entregues por APIs JSON).
- Registro de toda resposta observada no log de rede, para diagnóstico.
"""

import asyncio
import logging
from typing import List, Optional, Set

from playwright.async_api import Page, Response, Route

from streamfinder.core.candidates import CandidateSet, Provenance
from streamfinder.core.models import NetworkLogEntry
from streamfinder.core.patterns import find_quoted_urls, find_stream_urls, is_stream_url

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constantes de classificação
# ---------------------------------------------------------------------------

# Tipos de recurso abortados antes de sair do navegador.
BLOCKED_RESOURCE_TYPES = frozenset({"image", "stylesheet", "font"})

# Tipos de requisição cujo corpo de resposta é varrido em busca de URLs.
BODY_RESOURCE_TYPES = frozenset({"xhr", "fetch"})

STREAM_CONTENT_TYPES = (
    "application/x-mpegurl",
    "application/vnd.apple.mpegurl",
    "audio/mpegurl",
    "application/dash+xml",
)

STREAM_CONTENT_TYPE_PREFIXES = ("video/", "audio/")


def is_stream_content_type(content_type: Optional[str]) -> bool:
    """Retorna True se o Content-Type indicar uma playlist, manifesto ou mídia."""
    if not content_type:
        return False
    content_type = content_type.lower()
    if any(ct in content_type for ct in STREAM_CONTENT_TYPES):
        return True
    return any(prefix in content_type for prefix in STREAM_CONTENT_TYPE_PREFIXES)


def is_stream_response(url: str, content_type: Optional[str]) -> bool:
    """Classifica uma resposta como portadora de stream."""
    return is_stream_content_type(content_type) or is_stream_url(url)


def extract_body_urls(body: str) -> List[str]:
    """Aplica a biblioteca de padrões completa sobre o corpo de uma resposta."""
    urls = find_stream_urls(body)
    urls.extend(u for u in find_quoted_urls(body) if u not in urls)
    return urls


# ---------------------------------------------------------------------------
# Classe principal: NetworkCapture
# ---------------------------------------------------------------------------

class NetworkCapture:
    """
    Observador do tráfego de rede de uma página.

    Uso típico
    ----------
    >>> capture = NetworkCapture(candidates)
    >>> await capture.attach(page)
    >>> # ... navegar e interagir com a página ...
    >>> await capture.settle(5.0)
    >>> capture.network_log
    """

    def __init__(self, candidates: Optional[CandidateSet] = None):
        self.candidates = candidates if candidates is not None else CandidateSet()
        self.network_log: List[NetworkLogEntry] = []
        self._pending: Set[asyncio.Future] = set()

    async def attach(self, page: Page) -> None:
        """Ativa a interceptação de requisições e a escuta de respostas (antes do goto)."""
        await page.route("**/*", self.handle_route)
        page.on("response", self._on_response)

    async def handle_route(self, route: Route) -> None:
        """Aborta imagens, folhas de estilo e fontes; deixa o resto seguir."""
        try:
            if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
                await route.abort()
            else:
                await route.continue_()
        except Exception as e:
            # A página pode ter sido fechada com a requisição ainda pendente
            logger.debug("Falha ao tratar rota %s: %s", route.request.url, e)

    def _on_response(self, response: Response) -> None:
        # Não bloqueia o loop de eventos do Playwright: cada resposta vira uma tarefa
        task = asyncio.ensure_future(self.handle_response(response))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def handle_response(self, response: Response) -> None:
        """Registra a resposta, classifica-a e, se for XHR/fetch, varre o corpo."""
        url = response.url
        headers = dict(response.headers or {})
        content_type = headers.get("content-type", "")
        resource_type = response.request.resource_type

        self.network_log.append(NetworkLogEntry(
            url=url,
            resource_type=resource_type,
            headers=headers,
            content_type=content_type,
            status=response.status,
        ))

        if is_stream_response(url, content_type):
            if self.candidates.add(url, Provenance.NETWORK_RESPONSE):
                logger.info("[+] Stream na rede: %s (%s)", url[:120], content_type or "sem content-type")

        if resource_type in BODY_RESOURCE_TYPES:
            try:
                body = await response.text()
            except Exception as e:
                # Corpo binário ou já consumido
                logger.debug("Resposta sem corpo textual (%s): %s", url[:120], e)
                return
            added = self.candidates.add_all(extract_body_urls(body), Provenance.NETWORK_BODY)
            if added:
                logger.info("[+] %d URLs encontradas no corpo de %s", added, url[:120])

    async def settle(self, delay: float) -> None:
        """
        Aguarda o intervalo fixo de assentamento da rede e, em seguida, até o
        mesmo intervalo pelas respostas ainda em processamento.
        """
        if delay > 0:
            await asyncio.sleep(delay)
        pending = list(self._pending)
        if pending:
            await asyncio.wait(pending, timeout=delay if delay > 0 else None)

    def cancel_pending(self) -> None:
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    def __len__(self) -> int:
        return len(self.network_log)

    def __repr__(self) -> str:
        return f"NetworkCapture(responses={len(self.network_log)}, candidates={len(self.candidates)})"
