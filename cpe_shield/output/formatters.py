"""Output formatters for CPEShield results."""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..core.models import Vulnerability
from ..core.version import Version, compare
from ..utils.logging import get_logger

DESCRIPTION_PREVIEW = 60


class ConsoleFormatter:
    """Rich console formatter for CPEShield output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize the console formatter.

        Args:
            console: Rich console instance
        """
        self.console = console or Console()
        self.logger = get_logger("ConsoleFormatter")

    def format_scan_results(self, cpe: str, vulnerabilities: List[Vulnerability], scan_time: float) -> None:
        """Display the vulnerabilities found for a CPE name.

        Args:
            cpe: CPE name that was checked
            vulnerabilities: Matched vulnerabilities
            scan_time: Time taken for the lookup in seconds
        """
        self.console.print(self._create_summary_panel(cpe, vulnerabilities, scan_time))

        if not vulnerabilities:
            self.console.print(Panel("No vulnerabilities found!", style="green"))
            return

        self.console.print(self._create_vulnerabilities_table(vulnerabilities))

    def _create_summary_panel(self, cpe: str, vulnerabilities: List[Vulnerability], scan_time: float) -> Panel:
        if vulnerabilities:
            style = "red"
            title = f"Found {len(vulnerabilities)} vulnerabilities!"
        else:
            style = "green"
            title = "No vulnerabilities found"

        high = sum(1 for v in vulnerabilities if v.severity == "HIGH")
        content = (
            f"Software: {escape(cpe)}\n"
            f"Vulnerabilities: {len(vulnerabilities)} ({high} high)\n"
            f"Lookup time: {scan_time:.3f}s"
        )
        return Panel(content, title=title, style=style)

    def _create_vulnerabilities_table(self, vulnerabilities: List[Vulnerability]) -> Table:
        table = Table(title="Vulnerabilities Found")

        table.add_column("ID", style="red", no_wrap=True)
        table.add_column("Matched CPE", style="cyan")
        table.add_column("All prior", justify="center")
        table.add_column("CVSS", justify="right")
        table.add_column("Description", style="white")

        for vulnerability in vulnerabilities:
            matched = vulnerability.matched
            description = vulnerability.description
            if len(description) > DESCRIPTION_PREVIEW:
                description = description[:DESCRIPTION_PREVIEW] + "..."
            score = f"{vulnerability.cvss_score:.1f}" if vulnerability.cvss_score is not None else "-"

            table.add_row(
                escape(vulnerability.id),
                escape(matched.cpe) if matched else "-",
                "Y" if matched and matched.affects_all_prior else "",
                Text(score, style=self._get_severity_style(vulnerability.severity)),
                escape(description),
            )

        return table

    def _get_severity_style(self, severity: str) -> str:
        return {"HIGH": "red bold", "MEDIUM": "yellow", "LOW": "blue"}.get(severity, "white")

    def format_version_comparison(self, left: Version, right: Version) -> None:
        """Show how two versions tokenize and order."""
        table = Table(title="Version Comparison")
        table.add_column("Input", style="cyan")
        table.add_column("Tokens")
        table.add_column("Major", justify="right")

        for version in (left, right):
            tokens = " . ".join(str(t) for t in version.tokens) if not version.is_unspecified else "(unspecified)"
            major = str(version.major) if version.major is not None else "-"
            table.add_row(escape(version.text), tokens, major)

        self.console.print(table)
        symbol = {-1: "<", 0: "==", 1: ">"}[compare(left, right)]
        self.console.print(f"[bold]{escape(left.text)} {symbol} {escape(right.text)}[/bold]")


class JSONFormatter:
    """JSON formatter for CPEShield output."""

    def __init__(self, output_file: Optional[Path] = None) -> None:
        """Initialize the JSON formatter.

        Args:
            output_file: Optional output file path
        """
        self.output_file = output_file
        self.logger = get_logger("JSONFormatter")

    def format_scan_results(
        self,
        cpe: str,
        vulnerabilities: List[Vulnerability],
        scan_time: float,
        metadata: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Format scan results as JSON.

        Args:
            cpe: CPE name that was checked
            vulnerabilities: Matched vulnerabilities
            scan_time: Lookup time in seconds
            metadata: Optional additional metadata

        Returns:
            Formatted JSON data
        """
        result = {
            "scan_summary": {
                "cpe": cpe,
                "total_vulnerabilities": len(vulnerabilities),
                "scan_time_seconds": scan_time,
                "timestamp": datetime.now().isoformat(),
            },
            "vulnerabilities": [v.to_dict() for v in vulnerabilities],
        }

        if metadata:
            result["metadata"] = metadata

        return result

    def save_results(self, results: Dict[str, Any], output_file: Optional[Path] = None) -> None:
        """Save results to JSON file.

        Args:
            results: Results dictionary
            output_file: Output file path (uses instance default if None)
        """
        file_path = output_file or self.output_file
        if not file_path:
            raise ValueError("No output file specified")

        try:
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(results, f, indent=2, ensure_ascii=False)

            self.logger.info(f"Results saved to {file_path}")
        except IOError as e:
            self.logger.error(f"Failed to save results to {file_path}: {e}")
            raise
