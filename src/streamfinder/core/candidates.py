"""
candidates.py
=============
Conjunto ordenado e deduplicado de URLs candidatas.

A identidade de uma candidata é a string exata da URL; a proveniência (onde
ela foi descoberta) é guardada apenas para diagnóstico: a mesma URL vinda de
duas fontes diferentes colapsa em uma única entrada, preservando a primeira
proveniência e a ordem da primeira ocorrência.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional


class Provenance(str, Enum):
    """Mecanismo pelo qual uma URL candidata foi descoberta."""
    SCRIPT = "script"
    ATTRIBUTE = "attribute"
    MEDIA_ELEMENT = "media-element"
    NETWORK_RESPONSE = "network-response"
    NETWORK_BODY = "network-body"
    RUNTIME_HOOK = "runtime-hook"
    IFRAME = "iframe"


@dataclass
class CandidateURL:
    """Uma URL candidata e a sua proveniência."""
    url: str
    provenance: Provenance
    verified: bool = False


class CandidateSet:
    """
    Mapeamento URL -> CandidateURL que preserva a ordem de inserção.

    Valores vazios ou que não sejam strings são ignorados silenciosamente,
    de modo que o conjunto nunca contém entradas inválidas.
    """

    def __init__(self):
        self._entries: Dict[str, CandidateURL] = {}

    def add(self, url, provenance: Provenance) -> bool:
        """Adiciona a URL se ainda não existir. Retorna True se foi inserida."""
        if not isinstance(url, str) or not url:
            return False
        if url in self._entries:
            return False
        self._entries[url] = CandidateURL(url=url, provenance=Provenance(provenance))
        return True

    def add_all(self, urls: Iterable, provenance: Provenance) -> int:
        """Adiciona várias URLs com a mesma proveniência. Retorna quantas entraram."""
        return sum(1 for url in urls if self.add(url, provenance))

    def merge(self, other: "CandidateSet") -> int:
        """Une outro conjunto a este, mantendo a proveniência original de cada entrada."""
        added = 0
        for candidate in other:
            if self.add(candidate.url, candidate.provenance):
                self._entries[candidate.url].verified = candidate.verified
                added += 1
        return added

    def mark_verified(self, url: str) -> None:
        entry = self._entries.get(url)
        if entry is not None:
            entry.verified = True

    def get(self, url: str) -> Optional[CandidateURL]:
        return self._entries.get(url)

    def urls(self) -> List[str]:
        return list(self._entries)

    def candidates(self) -> List[CandidateURL]:
        return list(self._entries.values())

    def __iter__(self) -> Iterator[CandidateURL]:
        return iter(list(self._entries.values()))

    def __contains__(self, url) -> bool:
        return url in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"CandidateSet(urls={len(self._entries)})"


# ---------------------------------------------------------------------------
# Agregação final
# ---------------------------------------------------------------------------

def aggregate(
    observed: CandidateSet,
    rendered: CandidateSet,
    verified: Iterable,
) -> CandidateSet:
    """
    Produz a união final, nesta ordem de inserção:

    1. candidatas observadas durante a sessão (rede, iframes, hooks);
    2. a passagem final do extrator de conteúdo sobre o HTML renderizado;
    3. o subconjunto verificado.

    A verificação é apenas evidência: ela marca candidatas como verificadas,
    mas nunca remove nada da união.
    """
    verified = [url for url in verified if isinstance(url, str) and url]
    result = CandidateSet()
    result.merge(observed)
    result.merge(rendered)
    # O subconjunto verificado normalmente já está contido nas fontes acima.
    result.add_all(verified, Provenance.NETWORK_RESPONSE)
    for url in verified:
        result.mark_verified(url)
    return result
