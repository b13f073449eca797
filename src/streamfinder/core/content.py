"""
content.py
==========
Extrator de conteúdo: aplica a biblioteca de padrões a um documento HTML (ou
texto qualquer) já renderizado.

Superfícies varridas, nesta ordem fixa:
  a) conteúdo textual dos elementos <script>, incluindo literais entre aspas;
  b) todos os valores de atributos de todos os elementos;
  c) atributo src de <source>, <video> e <audio>;
  d) uma passagem global de regex sobre o documento inteiro.
"""

import logging
from typing import Optional

from bs4 import BeautifulSoup

from streamfinder.core.candidates import CandidateSet, Provenance
from streamfinder.core.patterns import (
    find_quoted_urls,
    find_stream_urls,
    is_stream_url,
    matches_any,
)

logger = logging.getLogger(__name__)

MEDIA_TAGS = ("source", "video", "audio")


def _attribute_values(element):
    for value in element.attrs.values():
        # BeautifulSoup devolve atributos multivalorados (class, rel) como listas
        if isinstance(value, (list, tuple)):
            yield " ".join(str(v) for v in value)
        elif isinstance(value, str):
            yield value


def scan_document(content: str, candidates: Optional[CandidateSet] = None) -> CandidateSet:
    """
    Extrai URLs de stream de um documento e as adiciona a um CandidateSet.

    Parâmetros
    ----------
    content : str
        HTML ou texto a ser analisado.
    candidates : CandidateSet, opcional
        Conjunto a ser preenchido. Se None, um novo conjunto é criado.

    Retorna
    -------
    CandidateSet com as URLs encontradas, com proveniência "script",
    "attribute" ou "media-element" conforme a superfície.
    """
    if candidates is None:
        candidates = CandidateSet()
    if not content:
        return candidates

    soup = BeautifulSoup(content, "html.parser")

    # a) Scripts
    for script in soup.find_all("script"):
        text = script.string or script.get_text()
        if not text:
            continue
        candidates.add_all(find_stream_urls(text), Provenance.SCRIPT)
        candidates.add_all(find_quoted_urls(text), Provenance.SCRIPT)

    # b) Atributos (data-*, src, href, ...)
    for element in soup.find_all(True):
        for value in _attribute_values(element):
            if is_stream_url(value):
                candidates.add(value.strip(), Provenance.ATTRIBUTE)
            candidates.add_all(find_stream_urls(value), Provenance.ATTRIBUTE)

    # c) Elementos de mídia
    for element in soup.find_all(MEDIA_TAGS):
        src = element.get("src")
        if isinstance(src, str) and matches_any(src):
            candidates.add(src.strip(), Provenance.MEDIA_ELEMENT)

    # d) Passagem global (categoria de reserva: "script")
    candidates.add_all(find_stream_urls(content), Provenance.SCRIPT)

    logger.debug("Documento de %d caracteres analisado: %d candidatas", len(content), len(candidates))
    return candidates


def extract_stream_urls(content: str):
    """Atalho que retorna apenas a lista de URLs encontradas em um documento."""
    return scan_document(content).urls()
