#!/usr/bin/env python3
"""
KUBECONFSET CLI
---------------
Front-end for the component-config negotiation engine:

1. defaults: render the defaulted component configurations.
2. fetch: merge cluster state with local overrides and render the result.
3. versions: report observed vs. preferred versions; exits 1 when any
   component needs a manual upgrade.

Author: KubeConfSet Team
Date: 2026-10-19
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from kubeconfset.cli.formatter import ConfigFormatter
from kubeconfset.cluster.client import ClusterClient, KubernetesClusterClient
from kubeconfset.componentconfigs import configset
from kubeconfset.core.errors import ComponentConfigError
from kubeconfset.io.config import ConfigFileError, LoadedConfig, load_config_file

console = Console()

EXIT_OK = 0
EXIT_UPGRADE_REQUIRED = 1
EXIT_ERROR = 2

ClientFactory = Callable[[argparse.Namespace], ClusterClient]


def kubernetes_client(args: argparse.Namespace) -> ClusterClient:
    return KubernetesClusterClient.from_kubeconfig(args.kubeconfig, args.context)


class KubeConfSetCLI:
    """
    CLI wrapper that translates user commands into config-set operations.
    """

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        self.parser = argparse.ArgumentParser(
            prog="kubeconfset",
            description="KubeConfSet - Component configuration defaults, fetch and upgrade checks",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.client_factory = client_factory or kubernetes_client
        self.formatter = ConfigFormatter()
        self._setup_args()

    def _setup_args(self):
        """Configures the command-line flags and subcommands."""
        self.parser.add_argument("--version", action="version", version="kubeconfset v1.0.0")
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
        subparsers = self.parser.add_subparsers(dest="command", metavar="Command")

        defaults_parser = subparsers.add_parser("defaults", help="Print defaulted component configurations")
        defaults_parser.add_argument("--config", help="Path to a ClusterConfiguration/InitConfiguration file")

        for name, help_text in (
            ("fetch", "Merge cluster configuration with local overrides"),
            ("versions", "Report component configuration versions"),
        ):
            sub = subparsers.add_parser(name, help=help_text)
            sub.add_argument("--config", help="Path to a configuration file with local component documents")
            sub.add_argument("--kubeconfig", default=None, help="Path to the kubeconfig file")
            sub.add_argument("--context", default=None, help="kubeconfig context to use")
            if name == "versions":
                sub.add_argument("-o", "--output", choices=["table", "yaml", "json"], default="table",
                                 help="Output format (default: table)")

    def print_header(self, subtitle: str):
        console.print(Panel.fit(
            "[bold cyan]KubeConfSet v1.0.0[/bold cyan]",
            title=f"[bold white]{subtitle}[/bold white]",
            border_style="cyan"
        ))

    def _cmd_defaults(self, loaded: LoadedConfig, args: argparse.Namespace) -> int:
        configset.default(loaded.cluster, loaded.api_endpoint, loaded.node_registration)
        self.formatter.display_configs(configset.marshal_all(loaded.cluster), "Defaulted Component Configurations")
        return EXIT_OK

    def _cmd_fetch(self, loaded: LoadedConfig, args: argparse.Namespace) -> int:
        client = self.client_factory(args)
        configset.fetch_from_cluster_with_local_overwrites(loaded.cluster, client, loaded.documents)
        self.formatter.display_configs(configset.marshal_all(loaded.cluster), "Effective Component Configurations")
        return EXIT_OK

    def _cmd_versions(self, loaded: LoadedConfig, args: argparse.Namespace) -> int:
        client = self.client_factory(args)
        states = configset.get_version_states(loaded.cluster, client, loaded.documents)
        if args.output == "table":
            self.formatter.print_version_table(states)
        else:
            self.formatter.print_version_documents(states, args.output)

        pending = [s.group for s in states if s.manual_upgrade_required]
        if pending:
            if args.output == "table":
                console.print(
                    f"\n[bold yellow]Manual upgrade required for:[/bold yellow] {', '.join(pending)}\n"
                    f"[dim]Supply updated documents for these groups with --config.[/dim]"
                )
            return EXIT_UPGRADE_REQUIRED
        return EXIT_OK

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Primary routing entry point. Returns the process exit status."""
        argv = sys.argv[1:] if argv is None else argv
        if not argv:
            self.print_header("Component Config Negotiation")
            self.parser.print_help()
            return EXIT_OK

        args = self.parser.parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        commands = {
            "defaults": self._cmd_defaults,
            "fetch": self._cmd_fetch,
            "versions": self._cmd_versions,
        }
        command = commands.get(args.command)
        if command is None:
            self.parser.print_help()
            return EXIT_ERROR

        try:
            loaded = load_config_file(args.config)
            return command(loaded, args)
        except (ComponentConfigError, ConfigFileError) as e:
            console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
            return EXIT_ERROR


def main():
    """Application entry point with interrupt handling."""
    try:
        sys.exit(KubeConfSetCLI().run())
    except KeyboardInterrupt:
        console.print("\n[bold red]Terminated by user.[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
