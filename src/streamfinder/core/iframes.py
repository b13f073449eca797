"""
iframes.py
==========
Crawler recursivo de iframes.

Para cada iframe encontrado:
1. registra um IframeRecord (profundidade + src, mesmo que ausente);
2. se houver um content frame, extrai candidatas do HTML renderizado dele;
3. se o src mencionar "stream" ou "player", abre uma página filha, navega até
   o src, extrai candidatas e desce nela também;
4. desce recursivamente no content frame.

A recursão é limitada apenas pela profundidade (padrão 5). Não há detecção de
ciclos: um iframe que aponte para um ancestral é revisitado até o limite.
"""

import logging
from typing import List, Optional

from streamfinder.core.candidates import CandidateSet, Provenance
from streamfinder.core.content import scan_document
from streamfinder.core.models import IframeRecord

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 5

# Heurística (sensível a maiúsculas) para abrir o src numa página própria.
PLAYER_SRC_KEYWORDS = ("stream", "player")


def looks_like_player(src: Optional[str]) -> bool:
    return bool(src) and any(keyword in src for keyword in PLAYER_SRC_KEYWORDS)


class IframeCrawler:
    """
    Percorre iframes aninhados de uma página.

    Parâmetros
    ----------
    session : BrowserSession
        Sessão dona das páginas filhas (qualquer objeto com new_child_page()
        e close_child()).
    candidates : CandidateSet
        Conjunto onde as URLs encontradas são adicionadas com proveniência "iframe".
    max_depth : int
        Profundidade máxima (a página principal tem profundidade 0).
    navigation_timeout : int
        Tempo limite, em milissegundos, da navegação das páginas filhas.
    """

    def __init__(
        self,
        session,
        candidates: CandidateSet,
        max_depth: int = DEFAULT_MAX_DEPTH,
        navigation_timeout: int = 30000,
    ):
        self.session = session
        self.candidates = candidates
        self.max_depth = max_depth
        self.navigation_timeout = navigation_timeout
        self.records: List[IframeRecord] = []

    def _collect(self, html: str) -> int:
        found = scan_document(html)
        return self.candidates.add_all(found.urls(), Provenance.IFRAME)

    async def crawl(self, target, depth: int = 0) -> None:
        """Percorre os iframes de uma página ou frame na profundidade informada."""
        if depth >= self.max_depth:
            return

        try:
            iframes = await target.query_selector_all("iframe")
        except Exception as e:
            logger.warning("Não foi possível listar iframes na profundidade %d: %s", depth, e)
            return

        for iframe in iframes:
            try:
                await self._process_iframe(iframe, depth)
            except Exception as e:
                logger.warning("Falha ao processar iframe na profundidade %d: %s", depth + 1, e)

    async def _process_iframe(self, iframe, depth: int) -> None:
        # el.src devolve a URL já resolvida (absoluta); "" quando não há src
        src = await iframe.evaluate("el => el.src") or None
        self.records.append(IframeRecord(depth=depth + 1, src=src))

        frame = await iframe.content_frame()
        if frame is None:
            return

        html = await frame.content()
        added = self._collect(html)
        logger.debug(
            "Iframe na profundidade %d processado (%d caracteres, %d novas URLs), src: %s",
            depth + 1, len(html), added, src or "nenhum",
        )

        if looks_like_player(src):
            await self._crawl_child_page(src, depth + 1)

        await self.crawl(frame, depth + 1)

    async def _crawl_child_page(self, src: str, depth: int) -> None:
        """Abre o src do iframe numa página filha, extrai e desce nela."""
        page = await self.session.new_child_page()
        try:
            await page.goto(src, wait_until="networkidle", timeout=self.navigation_timeout)
            self._collect(await page.content())
            await self.crawl(page, depth)
        except Exception as e:
            logger.warning("Falha ao navegar até o src do iframe %s: %s", src[:120], e)
        finally:
            await self.session.close_child(page)
