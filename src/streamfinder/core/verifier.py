"""
verifier.py
===========
Verificação de vida das URLs candidatas via requisições HEAD leves.

A verificação é apenas evidência: uma URL que falha aqui fica fora do
subconjunto verificado, mas não é removida do resultado final.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

import httpx

from streamfinder.core.patterns import WEBRTC_PSEUDO_SCHEME
from streamfinder.core.session import USER_AGENT

logger = logging.getLogger(__name__)


def build_cookie_header(cookies: Optional[Iterable[Dict[str, Any]]]) -> str:
    """Monta o cabeçalho Cookie a partir dos cookies da sessão do navegador."""
    return "; ".join(
        f"{c['name']}={c.get('value', '')}"
        for c in cookies or []
        if isinstance(c, dict) and c.get("name")
    )


def skips_probe(url) -> bool:
    """Pseudo-URLs e valores que não são strings nunca são sondados."""
    return not isinstance(url, str) or not url or url.startswith(WEBRTC_PSEUDO_SCHEME)


class URLVerifier:
    """
    Sonda cada candidata, uma de cada vez, com o contexto da sessão.

    Parâmetros
    ----------
    timeout : float
        Tempo limite por candidata, em segundos.
    user_agent : str
        User-Agent enviado nas sondagens.
    transport : httpx.AsyncBaseTransport, opcional
        Transporte alternativo (usado nos testes com httpx.MockTransport).
    """

    def __init__(
        self,
        timeout: float = 5.0,
        user_agent: str = USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.user_agent = user_agent
        self.transport = transport

    def _headers(self, cookies, referer: Optional[str]) -> Dict[str, str]:
        headers = {"User-Agent": self.user_agent}
        cookie_header = build_cookie_header(cookies)
        if cookie_header:
            headers["Cookie"] = cookie_header
        if referer:
            headers["Referer"] = referer
        return headers

    async def verify(
        self,
        urls: Iterable,
        cookies: Optional[Iterable[Dict[str, Any]]] = None,
        referer: Optional[str] = None,
    ) -> List:
        """Retorna o subconjunto verificado, na ordem de entrada."""
        headers = self._headers(cookies, referer)
        verified = []
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            verify=False,
            transport=self.transport,
        ) as client:
            for url in urls:
                if skips_probe(url):
                    logger.debug("Verificação ignorada para: %r", url)
                    verified.append(url)
                    continue
                if await self.probe(client, url, headers):
                    verified.append(url)
        logger.info("%d URLs verificadas.", len(verified))
        return verified

    async def probe(self, client: httpx.AsyncClient, url: str, headers: Dict[str, str]) -> bool:
        try:
            response = await client.head(url, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Falha ao verificar %s: %s", url[:120], e)
            return False
        if response.status_code >= 400:
            logger.debug("Falha ao verificar %s: HTTP %d", url[:120], response.status_code)
            return False
        return True
