"""
Command Line Interface

Provides a rich CLI for port scanning and service fingerprinting:
- Colorized output with rich
- Live progress bar fed by the background progress reporter
- Results table and export to JSON/CSV/text
- Launching the web dashboard
"""

import argparse
import sys
from typing import List, Optional
import logging

from rich.console import Console
from rich.table import Table
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TimeElapsedColumn
from rich.panel import Panel
from rich.text import Text

from .models import ServiceRecord
from .progress import ProgressReporter
from .reporter import export_results
from .scanner import PortScanner, ScanConfig
from .signatures import SignatureDatabaseError, SignatureMatcher

logger = logging.getLogger(__name__)


class PortSleuthCLI:
    """Command line interface for the scanner."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.scanner: Optional[PortScanner] = None
        self.results: List[ServiceRecord] = []

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI with given arguments; returns the process exit status."""
        parser = self._create_parser()
        args = parser.parse_args(args)

        verbose = getattr(args, "verbose", False)
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

        if args.command == "scan":
            return self._run_scan(args)
        elif args.command == "web":
            return self._run_web_dashboard(args)
        parser.print_help()
        return 0

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="portsleuth",
            description="PortSleuth - concurrent TCP/UDP port scanner with service fingerprinting",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  %(prog)s scan --target 192.168.1.10 --start-port 1 --end-port 1024
  %(prog)s scan -d example.com -s 20 -e 450 --threads 50 --no-udp
  %(prog)s scan -d 10.0.0.5 -e 10000 --output results.json --format json
  %(prog)s web --host 127.0.0.1 --port 9876
            """
        )

        subparsers = parser.add_subparsers(dest="command", help="Available commands")

        scan_parser = subparsers.add_parser("scan", help="Scan a port range and fingerprint services")
        scan_parser.add_argument("--target", "-d", default="127.0.0.1", help="Target host")
        scan_parser.add_argument("--start-port", "-s", type=int, default=1, help="First port of the range")
        scan_parser.add_argument("--end-port", "-e", type=int, default=1024, help="Last port of the range")
        scan_parser.add_argument("--threads", "-t", type=int, default=10, help="Number of worker threads")
        scan_parser.add_argument("--timeout", "-c", type=float, default=0.5, help="TCP connect timeout (seconds)")
        scan_parser.add_argument("--udp-timeout", "-u", type=float, default=1.0, help="UDP reply timeout (seconds)")
        scan_parser.add_argument("--no-udp", action="store_true", help="Skip the UDP check")
        scan_parser.add_argument("--no-fingerprint", action="store_true", help="Report open ports without probing services")
        scan_parser.add_argument("--signatures", help="Path to the signature database (JSON)")
        scan_parser.add_argument("--output", "-o", help="Output file")
        scan_parser.add_argument("--format", choices=["json", "csv", "txt"], default="txt", help="Output format")
        scan_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

        web_parser = subparsers.add_parser("web", help="Start web dashboard")
        web_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
        web_parser.add_argument("--port", type=int, default=9876, help="Port to bind to")
        web_parser.add_argument("--signatures", help="Path to the signature database (JSON)")
        web_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")

        return parser

    def _run_scan(self, args) -> int:
        self.console.print(Panel.fit("PortSleuth Scanner", style="bold blue"))

        try:
            matcher = SignatureMatcher.load(args.signatures)
        except SignatureDatabaseError as e:
            self.console.print(f"Failed to load signature database: {e}", style="red")
            return 1

        config = ScanConfig(
            target=args.target,
            start_port=args.start_port,
            end_port=args.end_port,
            threads=args.threads,
            tcp_timeout=args.timeout,
            udp_timeout=args.udp_timeout,
            scan_udp=not args.no_udp,
            fingerprint=not args.no_fingerprint,
            verbose=args.verbose,
        )
        try:
            config.validate()
        except ValueError as e:
            self.console.print(f"Invalid scan parameters: {e}", style="red")
            return 2

        self.console.print(f"Starting scan on target: [cyan]{config.target}[/cyan]")
        self.scanner = PortScanner(config, matcher)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console
        ) as progress:
            task = progress.add_task("Scanning...", total=config.total_ports)

            def update(done: int, total: int) -> None:
                progress.update(task, completed=done)

            with ProgressReporter(config.total_ports, self.scanner.progress, config.progress_interval, update):
                self.results = self.scanner.scan()

        self._display_results()

        if args.output:
            self._save_results(args.output, args.format, config)
        return 0

    def _display_results(self) -> None:
        if not self.results:
            self.console.print("No open ports found.", style="yellow")
            return

        table = Table(title="Scan Results")
        table.add_column("Port", style="magenta", justify="right")
        table.add_column("Protocol", style="green")
        table.add_column("State", style="bold")
        table.add_column("Service", style="blue")
        table.add_column("Version")
        table.add_column("Banner", style="dim")
        table.add_column("Confidence", justify="right")

        for record in sorted(self.results, key=lambda r: (r.port, r.transport.value)):
            banner = record.banner or "-"
            if record.tls_info:
                banner = f"{banner} [TLS: {record.tls_info.subject}]" if record.banner else f"TLS: {record.tls_info.subject}"
            table.add_row(
                str(record.port),
                record.transport.value,
                Text(record.state.value, style=self._get_state_style(record.state.value)),
                record.service or "unknown",
                record.version or "-",
                banner,
                Text(f"{record.confidence * 100:.0f}%", style=self._get_confidence_style(record.confidence)),
            )

        self.console.print(table)
        self._display_summary()

    def _display_summary(self) -> None:
        open_count = len(self.scanner.get_open_ports()) if self.scanner else 0
        summary = Text()
        summary.append(f"Ports scanned: {self.scanner.progress.value if self.scanner else 0}\n")
        summary.append(f"Open (TCP): {open_count}\n", style="green")
        summary.append(f"Open|filtered (UDP): {len(self.results) - open_count}\n", style="yellow")
        if self.scanner:
            services = sorted(self.scanner.get_service_summary().items(), key=lambda item: (-item[1], item[0]))
            summary.append("Services: " + ", ".join(f"{name} ({count})" for name, count in services))
        self.console.print(Panel(summary, title="Summary", expand=False))

    def _get_state_style(self, state: str) -> str:
        if state == "OPEN":
            return "green"
        elif state == "FILTERED":
            return "yellow"
        return "white"

    def _get_confidence_style(self, confidence: float) -> str:
        if confidence > 0.8:
            return "bold green"
        elif confidence > 0.5:
            return "yellow"
        return "red"

    def _save_results(self, output_path: str, format: str, config: ScanConfig) -> None:
        metadata = {
            "target": config.target,
            "start_port": config.start_port,
            "end_port": config.end_port,
            "scanned": self.scanner.progress.value if self.scanner else 0,
        }
        try:
            content = export_results(self.results, format, metadata)
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(content)
            self.console.print(f"Results saved to {output_path}", style="green")
        except OSError as e:
            self.console.print(f"Error saving results: {e}", style="red")

    def _run_web_dashboard(self, args) -> int:
        from .web_dashboard import WebDashboard

        try:
            matcher = SignatureMatcher.load(args.signatures)
        except SignatureDatabaseError as e:
            logger.warning(f"{e}. Continuing with port scanning and protocol labels only.")
            matcher = SignatureMatcher.empty()

        dashboard = WebDashboard(matcher)
        self.console.print(f"Starting web dashboard on {args.host}:{args.port}", style="green")
        self.console.print(f"Access the dashboard at: http://{args.host}:{args.port}", style="cyan")
        dashboard.run(host=args.host, port=args.port)
        return 0


def main():
    """Main entry point for CLI."""
    cli = PortSleuthCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
