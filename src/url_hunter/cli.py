"""Command line interface for URL Hunter."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .core.config import load_settings
from .core.engine import DiscoveryEngine
from .core.events import ConsoleEventSink
from .core.models import TrafficEvent
from .core.store import MemoryStore


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="URL Hunter")
    parser.add_argument("--config", help="Arquivo JSON com a configuração de filtros")
    parser.add_argument("--export", help="Exporta as URLs descobertas para este arquivo JSON (padrão: URL_HUNTER_STORE)")
    parser.add_argument("-d", "--domain", action="append", default=None, help="Domínio raiz (repetível)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log detalhado")

    commands = parser.add_subparsers(dest="command", required=True)

    scan = commands.add_parser("scan", help="Sonda uma lista de URLs")
    scan.add_argument("urls", nargs="*", help="URLs a sondar")
    scan.add_argument("-f", "--file", help="Arquivo com uma URL por linha")
    scan.add_argument("--fuzz", action="store_true", help="Executa fuzzing com o dicionário configurado")

    brute = commands.add_parser("brute", help="Força bruta de links curtos")
    brute.add_argument("base_url", help="URL base")
    brute.add_argument("--force", action="store_true", help="Ignora o limite de combinações")

    replay = commands.add_parser("replay", help="Classifica tráfego capturado (METHOD URL [STATUS])")
    replay.add_argument("file", help="Arquivo com uma requisição por linha")

    return parser.parse_args(argv)


def read_lines(path: Path) -> List[str]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]


def parse_traffic_line(line: str) -> Optional[TrafficEvent]:
    """Parses ``METHOD URL [STATUS]`` or a bare URL."""

    parts = line.split()
    if not parts:
        return None
    if len(parts) == 1:
        return TrafficEvent(url=parts[0])

    method, url = parts[0], parts[1]
    status: Optional[int] = None
    if len(parts) > 2:
        try:
            status = int(parts[2])
        except ValueError:
            status = None
    return TrafficEvent(url=url, method=method.upper(), status_code=status)


def _collect_urls(urls: Iterable[str], file: Optional[str]) -> List[str]:
    collected = list(urls)
    if file:
        collected.extend(read_lines(Path(file)))
    return collected


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(root_domains=args.domain, config_path=args.config)
    store = MemoryStore(settings.config_path)
    engine = DiscoveryEngine(settings, ConsoleEventSink(), store)

    try:
        if args.command == "scan":
            urls = _collect_urls(args.urls, args.file)
            if not urls:
                print("[!] Nenhuma URL informada.")
                return 1
            config = engine.config.get()
            engine.scanner.set_fuzz_enabled(args.fuzz or config.auto_fuzz_enabled)
            print(f"=== Varredura ativa de {len(urls)} URL(s) ===")
            future = engine.scan(urls)
            if future is None:
                return 1
            future.result()
            if config.short_link_brute_enabled:
                for url in urls:
                    _run_brute(engine, url, force=False)

        elif args.command == "brute":
            if not _run_brute(engine, args.base_url, force=args.force):
                return 1

        elif args.command == "replay":
            if not len(engine.root_domains):
                print("[!] Informe ao menos um domínio raiz com -d.")
                return 1
            events = [parse_traffic_line(line) for line in read_lines(Path(args.file))]
            print(f"=== Classificando {len(events)} requisição(ões) ===")
            pending = [engine.observe(event) for event in events if event is not None]
            for future in pending:
                if future is not None:
                    future.result()
            for root, hosts in sorted(engine.discovered_subdomains().items()):
                print(f"[+] {root}: {len(hosts)} host(s)")
    except KeyboardInterrupt:
        print("\n[!] Interrompido, encerrando...")
        engine.stop()
    finally:
        engine.shutdown()

    export_path = Path(args.export) if args.export else settings.store_path
    if export_path is not None:
        total = store.export_json(export_path)
        print(f"[+] {total} URL(s) exportadas para {export_path}")
    return 0


def _run_brute(engine: DiscoveryEngine, base_url: str, *, force: bool) -> bool:
    print(f"=== Força bruta de links curtos em {base_url} ===")
    future = engine.brute_force(base_url, force=force)
    if future is None:
        return False
    future.result()
    return True


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
