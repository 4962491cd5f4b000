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
import sys
import argparse
import roundtrip
import bittensor
from rich import print
from typing import List, Optional

from .comparecommand import CompareFiles
from .democommand import RunDemo


ALIAS_TO_COMMAND = {
    "d": "demo",
    "demo": "demo",
}

COMMANDS = {
    "demo": {
        "name": "demo",
        "aliases": ["d", "demo"],
        "help": "Commands for round tripping data through the storage network.",
        "commands": {
            "run": RunDemo,  # Generate, split, store, retrieve, verify and merge
            "compare": CompareFiles,  # Byte-for-byte comparison of two local files
        },
    },
}


class cli:
    """
    Implementation of the Command Line Interface (CLI) class for the storage round trip demo.
    """

    def __init__(
        self,
        config: Optional["bittensor.config"] = None,
        args: Optional[List[str]] = None,
    ):
        """
        Initializes a roundtrip.cli object.

        Args:
            config (bittensor.config, optional): The configuration settings for the CLI.
            args (List[str], optional): List of command line arguments.
        """
        # If no config is provided, create a new one from args.
        if config == None:
            config = cli.create_config(args)

        self.config = config
        if self.config.command in ALIAS_TO_COMMAND:
            self.config.command = ALIAS_TO_COMMAND[self.config.command]
        else:
            print(f":cross_mark:[red]Unknown command: {self.config.command}[/red]")
            sys.exit()

        # Check if the config is valid.
        cli.check_config(self.config)

    @staticmethod
    def __create_parser__() -> "argparse.ArgumentParser":
        """
        Creates the argument parser for the roundtrip CLI.

        Returns:
            argparse.ArgumentParser: An argument parser object for the roundtrip CLI.
        """
        parser = argparse.ArgumentParser(
            description=f"roundtrip cli v{roundtrip.__version__}",
            usage="rtcli <command> <command args>",
            add_help=True,
        )
        cmd_parsers = parser.add_subparsers(dest="command")
        for command in COMMANDS.values():
            subcmd_parser = cmd_parsers.add_parser(
                name=command["name"],
                aliases=command["aliases"],
                help=command["help"],
            )
            subparser = subcmd_parser.add_subparsers(
                help=command["help"], dest="subcommand", required=True
            )

            for subcommand in command["commands"].values():
                subcommand.add_args(subparser)

        return parser

    @staticmethod
    def create_config(args: Optional[List[str]]) -> "bittensor.config":
        """
        Builds the CLI configuration from the command line arguments.

        Args:
            args (List[str]): List of command line arguments.

        Returns:
            bittensor.config: The configuration object for the roundtrip CLI.
        """
        parser = cli.__create_parser__()

        # If no arguments are passed, print help text and exit the program.
        if not args:
            parser.print_help()
            sys.exit()

        return bittensor.config(parser, args=args)

    @staticmethod
    def check_config(config: "bittensor.config"):
        """
        Checks if the essential configuration exists for the chosen command.

        Args:
            config (bittensor.config): The configuration settings for the CLI.
        """
        command_data = COMMANDS[config.command]
        if config["subcommand"] != None:
            command_data["commands"][config["subcommand"]].check_config(config)
        else:
            print(f":cross_mark:[red]Missing subcommand for: {config.command}[/red]")
            sys.exit(1)

    def run(self) -> bool:
        """
        Executes the command from the configuration.

        Returns:
            bool: True when the command succeeded.
        """
        command_data = COMMANDS[self.config.command]
        return command_data["commands"][self.config["subcommand"]].run(self)


def main(args: Optional[List[str]] = None):
    """Console entry point, exits non-zero when the command did not succeed."""
    if args is None:
        args = sys.argv[1:]
    ok = cli(args=args).run()
    sys.exit(0 if ok else 1)
