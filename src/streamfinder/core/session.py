"""
session.py
==========
Controlador de sessão: cria o navegador, o contexto e a página principal com
propriedades anti-detecção, e garante o fechamento de todos os recursos
(página principal e páginas filhas abertas para iframes) em qualquer saída.
"""

import logging
import os
import shutil
import subprocess
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from streamfinder.core.errors import InternalError
from streamfinder.core.models import ExtractionRequest

logger = logging.getLogger(__name__)


USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Referer": "https://www.google.com/",
}

CHROMIUM_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-web-security",
    "--disable-features=IsolateOrigins,site-per-process",
    "--ignore-certificate-errors",
    "--mute-audio",
]

# Nome do navegador -> (tipo do Playwright, canal)
BROWSER_MAP = {
    "chrome": ("chromium", "chrome"),
    "edge": ("chromium", "msedge"),
    "firefox": ("firefox", None),
    "chromium": ("chromium", None),
}

# Mascara as propriedades mais usadas para detectar automação.
STEALTH_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
Object.defineProperty(navigator, 'languages', {get: () => ['en-US', 'en']});
Object.defineProperty(navigator, 'plugins', {get: () => [1, 2, 3, 4, 5]});
if (!window.chrome) { window.chrome = { runtime: {} }; }
"""


def ensure_playwright_browsers(browser: str = "chromium") -> bool:
    """
    Garante que o navegador do Playwright esteja instalado.

    Em Linux/macOS tenta também instalar as dependências do sistema, usando
    sudo quando disponível. Retorna True se a instalação terminou sem erros.
    """
    browser_type_name, _channel = BROWSER_MAP.get(browser.lower(), ("chromium", None))
    env = os.environ.copy()
    install = [sys.executable, "-m", "playwright", "install", browser_type_name]

    if sys.platform.startswith("win"):
        try:
            subprocess.run(install, check=True, env=env)
            return True
        except subprocess.CalledProcessError as e:
            logger.error("Erro ao instalar o %s: %s", browser_type_name, e)
            return False

    has_sudo = shutil.which("sudo") is not None
    env["DEBIAN_FRONTEND"] = "noninteractive"
    cmd_prefix = ["sudo", "-E"] if has_sudo else []
    try:
        subprocess.run(install, check=True, env=env)
        subprocess.run(
            cmd_prefix + [sys.executable, "-m", "playwright", "install-deps", browser_type_name],
            check=True, env=env,
        )
    except subprocess.CalledProcessError as e:
        logger.error("Erro durante a instalação: %s", e)
        return False
    logger.info("Navegador e dependências instalados com sucesso!")
    return True


def build_launch_kwargs(browser: str, headless: bool) -> Dict[str, Any]:
    """Monta os argumentos de launch() para o navegador escolhido."""
    browser_type_name, channel = BROWSER_MAP.get(browser.lower(), ("chromium", None))
    kwargs: Dict[str, Any] = {"browser_type": browser_type_name, "headless": headless}
    if browser_type_name == "chromium":
        kwargs["args"] = list(CHROMIUM_ARGS)
    if channel:
        kwargs["channel"] = channel
    return kwargs


async def _close_quietly(resource, label: str) -> None:
    # Falhas no encerramento são apenas registradas
    try:
        await resource.close()
    except Exception as e:
        logger.warning("Falha ao fechar o %s: %s", label, e)


class BrowserSession:
    """
    Sessão de navegador exclusiva de uma requisição.

    Mantém a página principal e as páginas filhas abertas pelo crawler de
    iframes. close() é idempotente: a sessão é fechada exatamente uma vez.
    """

    def __init__(self, browser: Browser, context: BrowserContext, page: Page):
        self.browser = browser
        self.context = context
        self.page = page
        self.child_pages: List[Page] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def new_child_page(self) -> Page:
        """Abre uma página filha isolada no mesmo contexto (compartilha cookies)."""
        page = await self.context.new_page()
        self.child_pages.append(page)
        return page

    async def close_child(self, page: Page) -> None:
        if page in self.child_pages:
            self.child_pages.remove(page)
        try:
            await page.close()
        except Exception as e:
            logger.debug("Falha ao fechar página filha: %s", e)

    async def cookies(self) -> List[Dict[str, Any]]:
        return await self.context.cookies()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for page in list(self.child_pages):
            await self.close_child(page)
        await _close_quietly(self.context, "contexto")
        await _close_quietly(self.browser, "navegador")
        logger.info("Navegador fechado.")


@asynccontextmanager
async def open_session(
    request: ExtractionRequest,
    headless: bool = True,
    browser: str = "chromium",
    user_agent: str = USER_AGENT,
) -> AsyncIterator[BrowserSession]:
    """
    Abre uma sessão configurada para a requisição e a fecha incondicionalmente.

    Falhas ao iniciar o navegador levantam InternalError.
    """
    async with async_playwright() as p:
        launch_kwargs = build_launch_kwargs(browser, headless)
        browser_type = getattr(p, launch_kwargs.pop("browser_type"))
        try:
            browser_instance = await browser_type.launch(**launch_kwargs)
        except Exception as e:
            raise InternalError(f"Error: failed to launch browser: {e}", error="Browser launch failed") from e

        session: Optional[BrowserSession] = None
        try:
            context = await browser_instance.new_context(
                user_agent=user_agent,
                extra_http_headers=EXTRA_HEADERS,
                locale="en-US",
                ignore_https_errors=True,
            )
            cookies = request.playwright_cookies()
            if cookies:
                await context.add_cookies(cookies)
                logger.info("%d cookies aplicados à sessão.", len(cookies))

            page = await context.new_page()
            await page.add_init_script(STEALTH_SCRIPT)
            session = BrowserSession(browser_instance, context, page)
            yield session
        finally:
            if session is not None:
                await session.close()
            else:
                await _close_quietly(browser_instance, "navegador")
