"""
extractor.py
============
Módulo principal de extração de URLs de stream via automação de navegador
com Playwright.

Sequência de uma extração (uma sessão por requisição):

  Init -> Configuring -> Navigating -> WaitingForMedia -> Interacting
       -> CrawlingIframes -> Collecting -> Verifying -> Closed

Somente falhas de inicialização do navegador e de navegação encerram a
requisição com erro. Falhas nos demais estágios são absorvidas e o fluxo
segue para o estágio seguinte. A sessão é sempre fechada ao final.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from playwright.async_api import Page

from streamfinder.core.candidates import CandidateSet, Provenance, aggregate
from streamfinder.core.content import scan_document
from streamfinder.core.errors import (
    ExtractionError,
    ExtractionTimeout,
    classify_navigation_error,
    internal_error,
)
from streamfinder.core.hooks import RuntimeHooks
from streamfinder.core.iframes import DEFAULT_MAX_DEPTH, IframeCrawler
from streamfinder.core.models import (
    ExtractionRequest,
    ExtractionResult,
    ExtractionStage,
    StageTimeouts,
)
from streamfinder.core.network_capture import NetworkCapture
from streamfinder.core.session import BrowserSession, open_session
from streamfinder.core.verifier import URLVerifier
from streamfinder.plugins.generic.base import GenericPlugin
from streamfinder.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


# Elementos cuja presença indica que o player já foi montado.
MEDIA_SELECTOR = (
    'video, audio, source, [data-hls-url], [data-dash-url], iframe, '
    '[class*="player"], [id*="player"]'
)


class _ExtractionRun:
    """Estado de uma única requisição. Nunca é compartilhado entre requisições."""

    def __init__(self, request: ExtractionRequest):
        self.request = request
        self.stage = ExtractionStage.INIT
        self.observed = CandidateSet()

    def enter(self, stage: ExtractionStage) -> None:
        self.stage = stage
        logger.info("[*] %s: %s", stage.value, self.request.url)


# ---------------------------------------------------------------------------
# Classe principal: StreamExtractor
# ---------------------------------------------------------------------------

class StreamExtractor:
    """
    Extrator de URLs de stream (HLS, DASH, segmentos, blob, WebSocket, WebRTC).

    Parâmetros
    ----------
    headless : bool
        Se True (padrão), o navegador roda sem interface gráfica.
    browser : str
        Navegador a ser usado: "chrome", "edge", "firefox", "chromium" (padrão).
    timeouts : StageTimeouts, opcional
        Prazos fixos de cada estágio.
    max_iframe_depth : int
        Profundidade máxima da varredura de iframes (padrão 5).
    deadline : float, opcional
        Prazo total da extração em segundos. Por padrão não há prazo total:
        a latência é a soma dos prazos dos estágios executados.
    block_private_hosts : bool
        Se True (padrão), rejeita URLs da rede local (localhost, 192.168., ...).
    plugin_manager : PluginManager, opcional
        Seleciona o plugin de interação para cada URL. Por padrão só o
        GenericPlugin é usado; plugins de sites específicos entram via
        PluginManager.register_plugin() antes de criar o extrator.
    verifier : URLVerifier, opcional
        Verificador de vida das candidatas.
    session_factory : callable, opcional
        Fábrica de sessões (context manager assíncrono). Padrão: open_session.
    """

    def __init__(
        self,
        headless: bool = True,
        browser: str = "chromium",
        timeouts: Optional[StageTimeouts] = None,
        max_iframe_depth: int = DEFAULT_MAX_DEPTH,
        deadline: Optional[float] = None,
        block_private_hosts: bool = True,
        plugin_manager: Optional[PluginManager] = None,
        verifier: Optional[URLVerifier] = None,
        session_factory: Optional[Callable[..., Any]] = None,
    ):
        self.headless = headless
        self.browser_name = browser.lower()
        self.timeouts = timeouts or StageTimeouts()
        self.max_iframe_depth = max_iframe_depth
        self.deadline = deadline
        self.block_private_hosts = block_private_hosts
        self.plugin_manager = plugin_manager or PluginManager(
            GenericPlugin(settle_delay=self.timeouts.interaction_settle)
        )
        self.verifier = verifier or URLVerifier(timeout=self.timeouts.verification)
        self.session_factory = session_factory or open_session

    # -----------------------------------------------------------------------
    # API pública
    # -----------------------------------------------------------------------

    def build_request(self, url, cookies: Optional[Iterable[Any]] = None) -> ExtractionRequest:
        """Valida a URL e os cookies. Levanta ValidationError."""
        return ExtractionRequest.create(url, cookies, block_private_hosts=self.block_private_hosts)

    async def extract(self, url, cookies: Optional[Iterable[Dict[str, Any]]] = None) -> ExtractionResult:
        """
        Extrai URLs de stream de uma página.

        A validação acontece antes de qualquer recurso do navegador ser
        alocado. Retorna um ExtractionResult (sucesso ou "nada encontrado");
        erros são levantados como subclasses de ExtractionError.
        """
        request = self.build_request(url, cookies)

        if self.deadline:
            try:
                return await asyncio.wait_for(self._extract_core(request), timeout=self.deadline)
            except asyncio.TimeoutError as e:
                raise ExtractionTimeout(
                    f"Extraction exceeded the {self.deadline:g}s deadline."
                ) from e

        return await self._extract_core(request)

    # -----------------------------------------------------------------------
    # Núcleo
    # -----------------------------------------------------------------------

    async def _extract_core(self, request: ExtractionRequest) -> ExtractionResult:
        run = _ExtractionRun(request)
        try:
            async with self.session_factory(
                request, headless=self.headless, browser=self.browser_name
            ) as session:
                return await self._run_stages(run, session)
        except ExtractionError as e:
            logger.error("[!] Extração falhou em %s: %s", run.stage.value, e.details)
            raise
        except Exception as e:
            logger.exception("[!] Erro inesperado em %s", run.stage.value)
            raise internal_error(e) from e
        finally:
            run.enter(ExtractionStage.CLOSED)

    async def _run_stages(self, run: _ExtractionRun, session: BrowserSession) -> ExtractionResult:
        page = session.page
        url = run.request.url

        run.enter(ExtractionStage.CONFIGURING)
        hooks = RuntimeHooks()
        await hooks.install(page)
        capture = NetworkCapture(run.observed)
        await capture.attach(page)
        crawler = IframeCrawler(
            session,
            run.observed,
            max_depth=self.max_iframe_depth,
            navigation_timeout=self.timeouts.iframe_navigation,
        )

        try:
            run.enter(ExtractionStage.NAVIGATING)
            await self._navigate(page, url)

            run.enter(ExtractionStage.WAITING_FOR_MEDIA)
            await self._wait_for_media(page)

            run.enter(ExtractionStage.INTERACTING)
            await self._interact(page, url)

            run.enter(ExtractionStage.CRAWLING_IFRAMES)
            await crawler.crawl(page)

            run.enter(ExtractionStage.COLLECTING)
            run.observed.add_all(await hooks.drain(page), Provenance.RUNTIME_HOOK)
            await capture.settle(self.timeouts.network_settle)
            html = await self._rendered_html(page)

            run.enter(ExtractionStage.VERIFYING)
            verified = await self._verify(session, page, run.observed.urls())
        finally:
            capture.cancel_pending()

        candidates = aggregate(run.observed, scan_document(html), verified)
        result = ExtractionResult(
            candidates=candidates.candidates(),
            html=html,
            network_log=list(capture.network_log),
            iframe_records=list(crawler.records),
        )
        if result.found:
            logger.info("[✓] %d URLs de stream encontradas.", result.count)
        else:
            logger.info("[-] Nenhuma URL de stream encontrada. Prévia: %s", html[:500])
        return result

    # -----------------------------------------------------------------------
    # Estágios
    # -----------------------------------------------------------------------

    async def _navigate(self, page: Page, url: str) -> None:
        try:
            await page.goto(url, wait_until="load", timeout=self.timeouts.navigation)
        except Exception as e:
            raise classify_navigation_error(e) from e

    async def _wait_for_media(self, page: Page) -> None:
        try:
            await page.wait_for_selector(MEDIA_SELECTOR, state="attached", timeout=self.timeouts.media_wait)
        except Exception as e:
            logger.info("Nenhum elemento de mídia encontrado dentro do prazo: %s", e)

    async def _rendered_html(self, page: Page) -> str:
        try:
            html = await page.content()
        except Exception as e:
            logger.warning("Não foi possível ler o HTML renderizado: %s", e)
            return ""
        logger.info("HTML renderizado: %d caracteres.", len(html))
        return html

    async def _interact(self, page: Page, url: str) -> None:
        plugin = self.plugin_manager.get_plugin_for_url(url)
        try:
            await plugin.interact(page)
        except Exception as e:
            logger.warning("Plugin %s falhou: %s", plugin.name, e)

    async def _verify(self, session: BrowserSession, page: Page, urls: List[str]) -> List[str]:
        try:
            cookies = await session.cookies()
        except Exception as e:
            logger.warning("Não foi possível ler os cookies da sessão: %s", e)
            cookies = []
        try:
            return await self.verifier.verify(urls, cookies=cookies, referer=page.url)
        except Exception as e:
            logger.warning("Verificação falhou: %s", e)
            return []
