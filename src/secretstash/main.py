import argparse
import logging
import os
import sys
import textwrap
from typing import Optional

import secretstash
import secretstash.manage
from secretstash._output import TerminalBackend, output
from secretstash.cipher import all_ciphers
from secretstash.config import DEFAULT_PREFIX
from secretstash.kdf import all_key_derivations
from secretstash.log import setup_logging


def add_store_arguments(p, with_name=True):
    p.add_argument(
        "environment", help="Environment the secret belongs to.", type=str
    )
    if with_name:
        p.add_argument("name", help="Name of the secret.", type=str)
    p.add_argument(
        "-p",
        "--prefix",
        default=DEFAULT_PREFIX,
        help="Namespace of the secret store.",
    )
    p.add_argument(
        "--app",
        default=None,
        help="Application name. Defaults to the current directory's name.",
    )
    p.add_argument(
        "-c",
        "--config",
        dest="config_file",
        default=None,
        help="Configuration file. Uses ./secretstash.cfg if it exists.",
    )
    p.add_argument(
        "--cipher",
        default=None,
        choices=[c.name for c in all_ciphers],
        help="Cipher to use (overrides the configuration file).",
    )
    p.add_argument(
        "--key-derivation",
        default=None,
        choices=[kd.name for kd in all_key_derivations],
        help="Key derivation to use (overrides the configuration file).",
    )
    p.add_argument(
        "--priv-path",
        default=None,
        help="Directory holding the secret stores.",
    )


def add_editor_argument(p):
    p.add_argument(
        "--editor",
        "-e",
        metavar="EDITOR",
        default=os.environ.get("EDITOR", "vi"),
        help="Invoke EDITOR to edit (default: $EDITOR or vi)",
    )


def main(args: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(
        description=(
            "secretstash v{}: encrypted secrets per application and"
            " environment"
        ).format(secretstash.__version__),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
        epilog=textwrap.dedent(
            """
            The password is read from $SECRETSTASH_PASSWORD or asked for
            interactively."""
        ),
    )
    parser.set_defaults(func=parser.print_usage)

    parser.add_argument(
        "-d", "--debug", action="store_true", help="Enable debug mode."
    )

    subparsers = parser.add_subparsers()

    p = subparsers.add_parser(
        "create",
        help=textwrap.dedent(
            """
            Create a new secret with your editor. Fails if the secret
            exists already."""
        ),
    )
    add_store_arguments(p)
    add_editor_argument(p)
    p.set_defaults(func=secretstash.manage.create)

    p = subparsers.add_parser(
        "edit",
        help=textwrap.dedent(
            """
            Decrypt a secret, invoke the editor and encrypt the result
            again."""
        ),
    )
    add_store_arguments(p)
    add_editor_argument(p)
    p.set_defaults(func=secretstash.manage.edit)

    p = subparsers.add_parser("show", help="Print a decrypted secret.")
    add_store_arguments(p)
    p.set_defaults(func=secretstash.manage.show)

    p = subparsers.add_parser(
        "insert", help="Store a secret read from standard input."
    )
    add_store_arguments(p)
    p.set_defaults(func=secretstash.manage.insert)

    p = subparsers.add_parser("delete", help="Delete a secret.")
    add_store_arguments(p)
    p.set_defaults(func=secretstash.manage.delete)

    p = subparsers.add_parser(
        "list", help="List the secrets of an environment."
    )
    add_store_arguments(p, with_name=False)
    p.set_defaults(func=secretstash.manage.list_secrets)

    args = parser.parse_args(args)

    # Consume global arguments
    output.enable_debug = args.debug
    if args.debug:
        setup_logging(["secretstash"], logging.DEBUG)

    # Pass over to function
    if args.func.__name__ == "print_usage":
        args.func()
        sys.exit(1)

    output.backend = TerminalBackend()

    func_args = dict(args._get_kwargs())
    del func_args["func"]
    del func_args["debug"]
    try:
        return args.func(**func_args)
    except secretstash.ReportingException as e:
        e.report()
        sys.exit(1)
