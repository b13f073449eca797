"""
hooks.py
========
Injetor de hooks de runtime.

Antes de qualquer script da página rodar, envolve três pontos de entrada do
JavaScript com proxies transparentes que apenas registram observações:

- RTCPeerConnection: cada track remota gera a pseudo-URL webrtc-stream:<id>;
- WebSocket: cada conexão registra a URL de sinalização;
- URL.createObjectURL: cada URL blob: criada é registrada.

As observações ficam num buffer fechado dentro da própria página (vive
exatamente o tempo de vida da página) e são lidas uma única vez com drain().
"""

import logging
from typing import List

from playwright.async_api import Page

from streamfinder.core.patterns import WEBRTC_PSEUDO_SCHEME

logger = logging.getLogger(__name__)

DRAIN_FUNCTION = "__streamfinderDrain"

HOOK_SCRIPT = """
(() => {
  if (window.%(drain)s) { return; }
  const buffer = [];
  const record = (value) => {
    try { buffer.push(String(value)); } catch (e) {}
  };

  Object.defineProperty(window, '%(drain)s', {
    value: () => buffer.splice(0, buffer.length),
    enumerable: false,
    configurable: false,
    writable: false,
  });

  if (typeof window.RTCPeerConnection === 'function') {
    window.RTCPeerConnection = new Proxy(window.RTCPeerConnection, {
      construct(target, args, newTarget) {
        const pc = Reflect.construct(target, args, newTarget);
        pc.addEventListener('track', (event) => {
          if (event.streams && event.streams[0]) {
            record('%(scheme)s' + event.streams[0].id);
          }
        });
        return pc;
      },
    });
  }

  if (typeof window.WebSocket === 'function') {
    window.WebSocket = new Proxy(window.WebSocket, {
      construct(target, args, newTarget) {
        record(args[0]);
        return Reflect.construct(target, args, newTarget);
      },
    });
  }

  if (window.URL && typeof URL.createObjectURL === 'function') {
    URL.createObjectURL = new Proxy(URL.createObjectURL, {
      apply(target, thisArg, args) {
        const url = Reflect.apply(target, thisArg, args);
        record(url);
        return url;
      },
    });
  }
})();
""" % {"drain": DRAIN_FUNCTION, "scheme": WEBRTC_PSEUDO_SCHEME}

DRAIN_SCRIPT = "() => (typeof window.%s === 'function' ? window.%s() : [])" % (
    DRAIN_FUNCTION,
    DRAIN_FUNCTION,
)


class RuntimeHooks:
    """Instala os hooks numa página e drena as observações ao final da sessão."""

    def __init__(self):
        self.installed = False

    async def install(self, page: Page) -> None:
        """Registra o script de hooks para rodar antes dos scripts da página."""
        await page.add_init_script(HOOK_SCRIPT)
        self.installed = True

    async def drain(self, page: Page) -> List[str]:
        """
        Lê e esvazia o buffer de observações da página.

        Falhas (página fechada, contexto destruído) resultam em lista vazia.
        """
        if not self.installed:
            return []
        try:
            values = await page.evaluate(DRAIN_SCRIPT)
        except Exception as e:
            logger.warning("Não foi possível ler as observações dos hooks: %s", e)
            return []
        urls = [value for value in values or [] if isinstance(value, str) and value]
        logger.info("%d URLs observadas pelos hooks de runtime.", len(urls))
        return urls
