"""
Objetos falsos que imitam a API assíncrona do Playwright usada pelo
streamfinder (Page, Frame, ElementHandle, Route, Response), para testar o
pipeline sem abrir um navegador real.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from streamfinder.core.hooks import DRAIN_FUNCTION


class FakeRequest:
    def __init__(self, url: str, resource_type: str = "document"):
        self.url = url
        self.resource_type = resource_type


class FakeRoute:
    def __init__(self, url: str, resource_type: str):
        self.request = FakeRequest(url, resource_type)
        self.aborted = False
        self.continued = False

    async def abort(self):
        self.aborted = True

    async def continue_(self):
        self.continued = True


class FakeResponse:
    def __init__(
        self,
        url: str,
        content_type: str = "",
        resource_type: str = "document",
        body: str = "",
        body_error: Optional[Exception] = None,
        status: int = 200,
    ):
        self.url = url
        self.headers = {"content-type": content_type} if content_type else {}
        self.status = status
        self.request = FakeRequest(url, resource_type)
        self._body = body
        self._body_error = body_error

    async def text(self):
        if self._body_error is not None:
            raise self._body_error
        return self._body


class FakeIframe:
    """ElementHandle de um <iframe>."""

    def __init__(self, src: Optional[str] = None, frame=None, error: Optional[Exception] = None):
        self.src = src
        self.frame = frame
        self.error = error

    async def evaluate(self, expression, arg=None):
        if self.error is not None:
            raise self.error
        return self.src or ""

    async def content_frame(self):
        return self.frame


class FakeFrame:
    def __init__(self, html: str = "", iframes=(), url: str = "about:blank"):
        self.html = html
        self.iframes = list(iframes)
        self.url = url
        self.content_calls = 0

    async def query_selector_all(self, selector):
        return list(self.iframes)

    async def content(self):
        self.content_calls += 1
        return self.html


class FakePage(FakeFrame):
    """
    Página falsa. goto() dispara as respostas configuradas para os ouvintes
    de "response"; evaluate() responde ao dreno dos hooks e ao script de
    cliques.
    """

    def __init__(
        self,
        html: str = "",
        iframes=(),
        url: str = "about:blank",
        responses=(),
        hooked=(),
        goto_error: Optional[Exception] = None,
        goto_delay: float = 0,
        content_error: Optional[Exception] = None,
        route_error: Optional[Exception] = None,
        sites: Optional[Dict[str, object]] = None,
    ):
        super().__init__(html, iframes, url)
        self.responses = list(responses)
        self.hooked = list(hooked)
        self.goto_error = goto_error
        self.goto_delay = goto_delay
        self.content_error = content_error
        self.route_error = route_error
        self.wait_calls = []
        self.sites = sites or {}
        self.init_scripts: List[str] = []
        self.route_handlers = []
        self.listeners: Dict[str, list] = {}
        self.goto_calls: List[str] = []
        self.evaluate_calls: List[str] = []
        self.closed = False

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    async def route(self, pattern, handler):
        if self.route_error is not None:
            raise self.route_error
        self.route_handlers.append(handler)

    def on(self, event, handler):
        self.listeners.setdefault(event, []).append(handler)

    async def goto(self, url, **kwargs):
        self.goto_calls.append(url)
        if self.goto_delay:
            await asyncio.sleep(self.goto_delay)
        if self.goto_error is not None:
            raise self.goto_error
        site = self.sites.get(url)
        if isinstance(site, Exception):
            raise site
        if site is not None:
            self.html = site.html
            self.iframes = list(site.iframes)
        self.url = url
        for response in self.responses:
            for handler in self.listeners.get("response", []):
                handler(response)

    async def wait_for_selector(self, selector, **kwargs):
        self.wait_calls.append((selector, kwargs))
        return None

    async def evaluate(self, expression, arg=None):
        self.evaluate_calls.append(expression)
        if DRAIN_FUNCTION in expression:
            hooked, self.hooked = self.hooked, []
            return hooked
        return 0

    async def content(self):
        if self.content_error is not None:
            raise self.content_error
        return await super().content()

    async def close(self):
        self.closed = True


class FakeSession:
    """Sessão falsa: páginas filhas navegam usando o mapa `sites`."""

    def __init__(self, page: FakePage, sites: Optional[Dict[str, object]] = None, cookies=()):
        self.page = page
        self.sites = sites or {}
        self._cookies = list(cookies)
        self.child_pages: List[FakePage] = []
        self.opened_children: List[FakePage] = []
        self.close_count = 0

    async def new_child_page(self):
        page = FakePage(sites=self.sites)
        self.child_pages.append(page)
        self.opened_children.append(page)
        return page

    async def close_child(self, page):
        if page in self.child_pages:
            self.child_pages.remove(page)
        await page.close()

    async def cookies(self):
        return list(self._cookies)

    async def close(self):
        self.close_count += 1


class FakeSessionFactory:
    """Substitui open_session(): registra as chamadas e fecha a sessão no final."""

    def __init__(self, session: FakeSession):
        self.session = session
        self.calls = 0

    @asynccontextmanager
    async def __call__(self, request, **kwargs):
        self.calls += 1
        try:
            yield self.session
        finally:
            await self.session.close()
