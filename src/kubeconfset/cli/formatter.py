# src/kubeconfset/cli/formatter.py
import json
from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from kubeconfset.core.models import VersionState
from kubeconfset.io.exporter import ConfigExporter

console = Console()


class ConfigFormatter:
    """
    ConfigFormatter: renders component configurations and the
    version-state report for the terminal.
    """

    def display_configs(self, yaml_stream: str, title: str):
        if not yaml_stream.strip():
            console.print("[dim]ℹ No component configurations to show.[/dim]")
            return
        syntax = Syntax(yaml_stream.rstrip(), "yaml", theme="monokai", line_numbers=False)
        console.print(Panel(syntax, title=title, border_style="green"))

    def print_version_table(self, states: List[VersionState]):
        """
        One row per component group. Rows needing a manual upgrade are
        flagged in red.
        """
        table = Table(title="Component Configuration Versions", show_lines=True, header_style="bold magenta")
        table.add_column("Group", style="cyan")
        table.add_column("Current Version")
        table.add_column("Preferred Version")
        table.add_column("Manual Upgrade Required", justify="center")

        for state in states:
            current = state.current_version or "[dim]unknown[/dim]"
            flag = "[bold red]yes[/bold red]" if state.manual_upgrade_required else "[green]no[/green]"
            table.add_row(state.group, current, state.preferred_version, flag)

        console.print(table)

    def print_version_documents(self, states: List[VersionState], output: str):
        items = [state.to_dict() for state in states]
        if output == "json":
            console.print_json(json.dumps(items))
        else:
            console.print(ConfigExporter().export({"componentConfigs": items}), end="", markup=False, highlight=False)
