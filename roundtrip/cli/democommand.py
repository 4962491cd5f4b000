# The MIT License (MIT)
# Copyright © 2023 Yuma Rao
# Copyright © 2023 philanthrope

# Permission is hereby granted, free of charge, to any person obtaining a copy of this software and associated
# documentation files (the “Software”), to deal in the Software without restriction, including without limitation
# the rights to use, copy, modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so, subject to the following conditions:

# The above copyright notice and this permission notice shall be included in all copies or substantial portions of
# the Software.

# THE SOFTWARE IS PROVIDED “AS IS”, WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO
# THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL
# THE AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER
# DEALINGS IN THE SOFTWARE.
import os
import argparse

import bittensor

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

from roundtrip.client import DemoConfig, MemoryStore, RunResult, SubnetStore, run_roundtrip
from roundtrip.client.facade import NodeSelectionError, RemoteStoreError
from roundtrip.shared.events import close_events_logger, setup_events_logger
from roundtrip.shared.utils import human_size

from .default_values import defaults

# Create a console instance for CLI display.
console = Console()


def _mark(value):
    if value is None:
        return "[dim]-[/dim]"
    return "[green]✓[/green]" if value else "[red]✗[/red]"


def display_run_result(result: RunResult):
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Fragment", style="dim", width=10)
    table.add_column("Size", width=10)
    table.add_column("Uploaded", width=8)
    table.add_column("Downloaded", width=10)
    table.add_column("Verified", width=8)
    table.add_column("Data Hash", width=80)

    for frag in result.fragments:
        table.add_row(
            os.path.basename(frag.path),
            human_size(frag.size),
            _mark(frag.uploaded),
            _mark(frag.downloaded),
            _mark(frag.verified),
            frag.content_handle or (frag.error or ""),
        )
    table.add_row(
        os.path.basename(result.merged_path) if result.merged_path else "merged",
        human_size(result.total_size),
        "",
        "",
        _mark(result.merged_verified),
        "",
    )

    console.print(
        f"Round trip of {human_size(result.total_size)} in "
        f"{human_size(result.fragment_size)} fragments",
        style="bold green",
    )
    console.print(table)


def build_store(config: "bittensor.config"):
    """Builds the remote store for the run, in memory when ``--mock`` is set."""
    if config.mock:
        return MemoryStore(trusted=config.demo.replicas)

    wallet = bittensor.wallet(config=config)
    bittensor.logging.debug("wallet:", wallet)
    sub = bittensor.subtensor(config=config)
    bittensor.logging.debug("subtensor:", sub)
    return SubnetStore(
        wallet=wallet,
        subtensor=sub,
        netuid=config.netuid,
        stake_limit=config.demo.stake_limit,
        timeout=config.demo.timeout,
        encrypt=not config.noencrypt,
    )


class RunDemo:
    """
    Executes the 'run' command: a full storage round trip through the network.

    Usage:
    The command generates a random file, splits it into fixed-size fragments and stores each fragment
    on the storage subnet. Every fragment is then retrieved by its data hash, checked against the
    original, and the retrieved fragments are merged and checked against the whole file.
    All files live in a working directory that is removed when the command ends.

    Optional arguments:
    - --demo.total_size (int): Size of the generated file in bytes. Defaults to 1024.
    - --demo.fragment_size (int): Size of each fragment in bytes. Defaults to 256.
    - --demo.replicas (int): Number of storage nodes to select. Defaults to 1.
    - --demo.workdir (str): Working directory. A temporary directory is used when omitted.
    - --identity.private_key (str): Private key to check against --identity.expected_address.
    - --mock: Use an in-memory store instead of the network.

    Example usage:
    >>> rtcli demo run --demo.total_size 1000 --demo.fragment_size 256

    The exit status is 0 when every fragment and the merged file verified, 1 otherwise.
    """

    @staticmethod
    def run(cli) -> bool:
        r"""Round trip a generated file through the storage network."""
        try:
            config = DemoConfig.from_config(cli.config)
        except ValueError as e:
            bittensor.logging.error(f"invalid demo settings: {e}")
            return False

        if not cli.config.demo.dont_save_events:
            events_file = setup_events_logger(cli.config.demo.events_path)
            bittensor.logging.debug(f"recording events to {events_file}")

        store = build_store(cli.config)
        try:
            with store, console.status(":satellite: Running storage round trip..."):
                result = run_roundtrip(store, config)
        except NodeSelectionError as e:
            bittensor.logging.error(f"node selection failed: {e}")
            return False
        except RemoteStoreError as e:
            bittensor.logging.error(f"storage network error: {e}")
            return False
        except OSError as e:
            bittensor.logging.error(f"round trip aborted: {e}")
            return False
        finally:
            close_events_logger()

        display_run_result(result)
        if result.succeeded:
            bittensor.logging.success("All demo tasks completed, every check passed.")
        else:
            bittensor.logging.error(
                f"Round trip finished with failures: {result.verified_count}/"
                f"{len(result.fragments)} fragments verified, merged file verified: "
                f"{result.merged_verified}"
            )
        return result.succeeded

    @staticmethod
    def check_config(config: "bittensor.config"):
        if config.mock:
            return

        if not config.is_set("subtensor.network") and not config.no_prompt:
            network = Prompt.ask(
                "Enter subtensor network",
                default=defaults.subtensor.network,
                choices=["finney", "test"],
            )
            config.subtensor.network = str(network)

        if not config.is_set("netuid") and not config.no_prompt:
            netuid = Prompt.ask(
                "Enter netuid",
                default=defaults.netuid
                if config.subtensor.network == "finney"
                else "22",
            )
            config.netuid = str(netuid)

        if not config.is_set("wallet.name") and not config.no_prompt:
            wallet_name = Prompt.ask("Enter wallet name", default=defaults.wallet.name)
            config.wallet.name = str(wallet_name)

        if not config.is_set("wallet.hotkey") and not config.no_prompt:
            wallet_hotkey = Prompt.ask(
                "Enter wallet hotkey", default=defaults.wallet.hotkey
            )
            config.wallet.hotkey = str(wallet_hotkey)

    @staticmethod
    def add_args(parser: argparse.ArgumentParser):
        run_parser = parser.add_parser(
            "run", help="""Round trip a generated file through the storage network."""
        )
        run_parser.add_argument(
            "--netuid",
            type=str,
            default=defaults.netuid,
            help="Network identifier for the Bittensor network.",
        )
        run_parser.add_argument(
            "--demo.total_size",
            type=int,
            default=defaults.demo.total_size,
            help="Size in bytes of the generated test file.",
        )
        run_parser.add_argument(
            "--demo.fragment_size",
            type=int,
            default=defaults.demo.fragment_size,
            help="Size in bytes of each fragment.",
        )
        run_parser.add_argument(
            "--demo.replicas",
            type=int,
            default=defaults.demo.replicas,
            help="Number of storage nodes to store each fragment through.",
        )
        run_parser.add_argument(
            "--demo.stake_limit",
            type=float,
            default=defaults.demo.stake_limit,
            help="Minimum stake for a validator to be selected as a trusted node.",
        )
        run_parser.add_argument(
            "--demo.timeout",
            type=float,
            default=defaults.demo.timeout,
            help="Timeout in seconds for each store and retrieve query.",
        )
        run_parser.add_argument(
            "--demo.workdir",
            type=str,
            default=defaults.demo.workdir,
            help="Working directory for the run. An existing directory only gets a temporary subdirectory.",
        )
        run_parser.add_argument(
            "--demo.events_path",
            type=str,
            default=defaults.demo.events_path,
            help="Directory to record run events in.",
        )
        run_parser.add_argument(
            "--demo.dont_save_events",
            action="store_true",
            help="Do not record run events.",
            default=False,
        )
        run_parser.add_argument(
            "--demo.no_verify_proof",
            action="store_true",
            help="Do not verify the data hash of retrieved fragments.",
            default=False,
        )
        run_parser.add_argument(
            "--identity.private_key",
            type=str,
            default=defaults.identity.private_key,
            help="Hex private key (seed) to derive an address from as a sanity check.",
        )
        run_parser.add_argument(
            "--identity.expected_address",
            type=str,
            default=defaults.identity.expected_address,
            help="Address the private key is expected to derive.",
        )
        run_parser.add_argument(
            "--noencrypt",
            action="store_true",
            help="Do not encrypt fragments before storing them.",
        )
        run_parser.add_argument(
            "--mock",
            action="store_true",
            help="Round trip through an in-memory store instead of the network.",
        )
        run_parser.add_argument(
            "--no_prompt",
            action="store_true",
            help="Do not prompt for missing network and wallet settings.",
        )

        bittensor.wallet.add_args(run_parser)
        bittensor.subtensor.add_args(run_parser)
        bittensor.logging.add_args(run_parser)
