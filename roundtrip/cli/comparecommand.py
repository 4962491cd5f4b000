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

from roundtrip.shared.verify import Comparison, compare_files

console = Console()


class CompareFiles:
    """
    Executes the 'compare' command: checks two local files for byte-for-byte equality.

    Example usage:
    >>> rtcli demo compare --a part_0.bin --b downloaded_part_0.bin
    """

    @staticmethod
    def run(cli) -> bool:
        path_a = os.path.expanduser(cli.config.a)
        path_b = os.path.expanduser(cli.config.b)
        outcome = compare_files(path_a, path_b)

        if outcome is Comparison.EQUAL:
            console.print(f":white_check_mark: [green]{path_a} and {path_b} are identical[/green]")
        elif outcome is Comparison.DIFFERENT:
            console.print(f":cross_mark: [red]{path_a} and {path_b} differ[/red]")
        else:
            console.print(f":cross_mark: [red]could not read {path_a} or {path_b}[/red]")
        return outcome is Comparison.EQUAL

    @staticmethod
    def check_config(config: "bittensor.config"):
        if not config.get("a") or not config.get("b"):
            console.print(":cross_mark:[red]compare needs both --a and --b[/red]")
            raise SystemExit(1)

    @staticmethod
    def add_args(parser: argparse.ArgumentParser):
        compare_parser = parser.add_parser(
            "compare", help="""Compare two local files byte for byte."""
        )
        compare_parser.add_argument("--a", type=str, help="First file.")
        compare_parser.add_argument("--b", type=str, help="Second file.")
        bittensor.logging.add_args(compare_parser)
