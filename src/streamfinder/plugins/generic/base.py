"""
base.py
=======
Plugins de interação: simulam cliques em controles de player para disparar
o carregamento tardio dos streams. Os plugins não produzem candidatas; eles
apenas provocam requisições que o NetworkCapture e os hooks observam.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import List, Sequence

from playwright.async_api import Page

logger = logging.getLogger(__name__)


# Seletores associados a controles de play/stream, incluindo botões de players
# conhecidos (Video.js, JW Player).
PLAY_SELECTORS: List[str] = [
    "button",
    '[id*="play"]',
    '[class*="play"]',
    '[class*="player"]',
    "video",
    "audio",
    ".vjs-big-play-button",
    '[id*="stream"]',
    '[class*="stream"]',
    '[class*="btn"]',
    "[data-stream]",
    ".jwplayer",
    ".jw-display-icon-container",
    ".play-icon",
    'button[aria-label="Play"]',
    "#player",
    '[class*="live"]',
    '[class*="control"]',
    "[data-player]",
]

# Clica em todos os elementos de todos os seletores; falhas individuais são
# ignoradas. Retorna o número de cliques bem-sucedidos.
CLICK_SCRIPT = """(selectors) => {
    let clicks = 0;
    for (const selector of selectors) {
        let elements = [];
        try { elements = document.querySelectorAll(selector); } catch (e) { continue; }
        elements.forEach((el) => {
            try {
                if (typeof el.click === 'function') { el.click(); clicks++; }
            } catch (e) {}
        });
    }
    return clicks;
}"""


class BasePlugin(ABC):
    @property
    @abstractmethod
    def name(self) -> str:
        """Nome do plugin"""
        pass

    @property
    @abstractmethod
    def domain_pattern(self) -> str:
        """Regex para casar o domínio"""
        pass

    @abstractmethod
    async def interact(self, page: Page) -> None:
        """Ações para disparar o carregamento do stream (ex: clicar no play)"""
        pass


class GenericPlugin(BasePlugin):
    """
    Simulador de interação genérico.

    Clica em todos os elementos que casarem com PLAY_SELECTORS e espera um
    intervalo fixo para que players preguiçosos comecem a pedir manifestos.
    """

    def __init__(self, settle_delay: float = 10.0, selectors: Sequence[str] = PLAY_SELECTORS):
        self.settle_delay = settle_delay
        self.selectors = list(selectors)

    @property
    def name(self) -> str:
        return "Generic Extractor"

    @property
    def domain_pattern(self) -> str:
        return r".*"

    async def interact(self, page: Page) -> None:
        try:
            clicks = await page.evaluate(CLICK_SCRIPT, self.selectors)
            logger.info("%s elementos clicados.", clicks)
        except Exception as e:
            logger.warning("Interação falhou: %s", e)
            return
        if self.settle_delay > 0:
            await asyncio.sleep(self.settle_delay)
