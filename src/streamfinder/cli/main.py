"""
cli/main.py
===========
Interface de linha de comando do streamfinder.

Argumentos principais:
  url                  : Página de vídeo a ser analisada.
  --cookies            : Arquivo de cookies (.json ou .txt Netscape).
  --browser            : Navegador (chrome, edge, firefox, chromium).
  --max-depth          : Profundidade máxima da varredura de iframes.
  --deadline           : Prazo total opcional, em segundos.
  --json               : Imprime o resultado no formato JSON da API.
  --debug-dir          : Grava debug.html, network.json e iframes.json.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from streamfinder.cli.diagnostics import write_diagnostics
from streamfinder.core.errors import ExtractionError
from streamfinder.core.extractor import StreamExtractor
from streamfinder.core.models import ExtractionResult, StageTimeouts
from streamfinder.core.patterns import detect_format
from streamfinder.core.session import ensure_playwright_browsers

console = Console()

EXIT_SUCCESS = 0
EXIT_EMPTY = 1
EXIT_ERROR = 2

# Prefixo usado pelo curl e navegadores para cookies HttpOnly no formato Netscape
HTTP_ONLY_PREFIX = "#HttpOnly_"


# ---------------------------------------------------------------------------
# Cookies
# ---------------------------------------------------------------------------

def load_cookies_file(path: Optional[str]) -> List[Dict[str, Any]]:
    """Lê cookies de arquivos .json ou .txt (formato Netscape)."""
    if not path or not os.path.exists(path):
        return []
    cookies: List[Dict[str, Any]] = []
    if path.endswith(".json"):
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if isinstance(data, list):
            cookies = data
        elif isinstance(data, dict) and "cookies" in data:
            cookies = data["cookies"]
        return cookies

    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\r\n")
            http_only = line.startswith(HTTP_ONLY_PREFIX)
            if http_only:
                line = line[len(HTTP_ONLY_PREFIX):]
            if line.startswith("#") or not line.strip():
                continue
            # domínio, inclui subdomínios, caminho, seguro, expiração, nome, valor
            parts = line.split("\t")
            if len(parts) >= 7:
                expires = int(parts[4]) if parts[4].isdigit() else 0
                cookies.append({
                    "name": parts[5],
                    "value": parts[6],
                    "domain": parts[0],
                    "path": parts[2],
                    "expires": expires if expires > 0 else -1,
                    "httpOnly": http_only,
                    "secure": parts[3].upper() == "TRUE",
                })
    return cookies


# ---------------------------------------------------------------------------
# Saída
# ---------------------------------------------------------------------------

def render_result(result: ExtractionResult) -> None:
    if not result.found:
        payload = result.to_dict()
        console.print(f"[bold red][-] {payload['error']}[/]")
        console.print(f"[yellow]{payload['suggestion']}[/]")
        console.print(payload["details"])
        console.print(f"Respostas de rede observadas: {payload['networkLogCount']}")
        console.print(f"Iframes encontrados: {len(payload['iframeSources'])}")
        return

    table = Table(title=f"{result.count} URLs de stream encontradas")
    table.add_column("URL", overflow="fold")
    table.add_column("Formato")
    table.add_column("Origem")
    table.add_column("Verificada")
    for candidate in result.candidates:
        table.add_row(
            candidate.url,
            detect_format(candidate.url),
            candidate.provenance.value,
            "[green]sim[/]" if candidate.verified else "[red]não[/]",
        )
    console.print(table)
    console.print(f"\n[bold]Principal:[/] [green]{result.primary_url}[/]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="streamfinder",
        description="streamfinder: Descobre URLs de stream (HLS, DASH, blob, WebSocket, WebRTC) em páginas de vídeo.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exemplos de uso:
  streamfinder https://exemplo.com/video
  streamfinder https://exemplo.com/live --cookies cookies.txt --json
  streamfinder https://exemplo.com/live --debug-dir ./debug --verbose
        """,
    )

    parser.add_argument("url", nargs="?", help="URL da página de vídeo.")

    browser_group = parser.add_argument_group("Opções de Navegador")
    browser_group.add_argument(
        "--browser",
        choices=["chrome", "edge", "firefox", "chromium"],
        default="chromium",
        help="Navegador a ser usado (padrão: chromium).",
    )
    browser_group.add_argument(
        "--no-headless",
        action="store_false",
        dest="headless",
        default=True,
        help="Executa o navegador com interface gráfica.",
    )
    browser_group.add_argument(
        "--install-browsers",
        action="store_true",
        default=False,
        help="Instala o navegador do Playwright e suas dependências antes de extrair.",
    )

    exec_group = parser.add_argument_group("Opções de Execução")
    exec_group.add_argument(
        "--timeout",
        type=int,
        default=45000,
        help="Tempo limite da navegação em milissegundos (padrão: 45000).",
    )
    exec_group.add_argument(
        "--max-depth",
        type=int,
        default=5,
        help="Profundidade máxima da varredura de iframes (padrão: 5).",
    )
    exec_group.add_argument(
        "--deadline",
        type=float,
        default=None,
        help="Prazo total da extração em segundos (padrão: sem prazo).",
    )
    exec_group.add_argument(
        "--allow-private-hosts",
        action="store_false",
        dest="block_private_hosts",
        default=True,
        help="Permite URLs da rede local (localhost, 192.168.x.x, ...).",
    )

    cookie_group = parser.add_argument_group("Opções de Cookies")
    cookie_group.add_argument(
        "--cookies",
        help="Caminho para um arquivo de cookies (.txt ou .json).",
    )

    output_group = parser.add_argument_group("Saída")
    output_group.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Imprime o resultado no formato JSON.",
    )
    output_group.add_argument(
        "--debug-dir",
        help="Diretório onde gravar debug.html, network.json e iframes.json.",
    )
    output_group.add_argument(
        "--verbose", "-v",
        action="store_true",
        default=False,
        help="Mostra o log detalhado de cada estágio.",
    )
    return parser


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )


async def run(args: argparse.Namespace) -> int:
    extractor = StreamExtractor(
        headless=args.headless,
        browser=args.browser,
        timeouts=StageTimeouts(navigation=args.timeout),
        max_iframe_depth=args.max_depth,
        deadline=args.deadline,
        block_private_hosts=args.block_private_hosts,
    )

    try:
        cookies = load_cookies_file(args.cookies)
    except (OSError, ValueError) as e:
        console.print(f"[bold red]Erro ao ler o arquivo de cookies:[/] {e}")
        return EXIT_ERROR

    try:
        with console.status(f"[cyan]Processando: {args.url}"):
            result = await extractor.extract(args.url, cookies)
    except ExtractionError as e:
        if args.json:
            console.print_json(data={**e.to_dict(), "status": e.status_code})
        else:
            console.print(f"[bold red]{e.error}[/] ({e.error_code}): {e.details}")
        return EXIT_ERROR

    if args.debug_dir:
        paths = write_diagnostics(result, args.debug_dir)
        console.print(f"[dim]Diagnóstico gravado em: {', '.join(paths.values())}[/]")

    if args.json:
        console.print_json(data=result.to_dict())
    else:
        render_result(result)

    return EXIT_SUCCESS if result.found else EXIT_EMPTY


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.url:
        parser.print_help()
        console.print("\n[bold red]Erro:[/] Forneça uma URL.")
        return EXIT_ERROR

    setup_logging(args.verbose)

    if args.install_browsers:
        ensure_playwright_browsers(args.browser)

    return asyncio.run(run(args))


def main_entry():
    sys.exit(main())


if __name__ == "__main__":
    main_entry()
