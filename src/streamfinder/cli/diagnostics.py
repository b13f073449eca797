"""
diagnostics.py
==============
Grava os artefatos de diagnóstico de uma extração (HTML renderizado, log de
rede e lista de iframes) para depuração posterior.
"""

import json
import os
from typing import Dict

from streamfinder.core.models import ExtractionResult

DEBUG_HTML = "debug.html"
NETWORK_JSON = "network.json"
IFRAMES_JSON = "iframes.json"


def write_diagnostics(result: ExtractionResult, directory: str) -> Dict[str, str]:
    """Escreve os artefatos em `directory` e retorna {nome: caminho}."""
    os.makedirs(directory, exist_ok=True)
    paths = {
        "html": os.path.join(directory, DEBUG_HTML),
        "network": os.path.join(directory, NETWORK_JSON),
        "iframes": os.path.join(directory, IFRAMES_JSON),
    }

    with open(paths["html"], "w", encoding="utf-8") as f:
        f.write(result.html)
    with open(paths["network"], "w", encoding="utf-8") as f:
        json.dump([entry.to_dict() for entry in result.network_log], f, indent=2)
    with open(paths["iframes"], "w", encoding="utf-8") as f:
        json.dump([record.to_dict() for record in result.iframe_records], f, indent=2)

    return paths
