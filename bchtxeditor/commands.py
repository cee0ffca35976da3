# bch-tx-editor - Bitcoin Cash transaction editor
# Copyright (C) 2019-2020 The ElectrumSV Developers
#
# Permission is hereby granted, free of charge, to any person
# obtaining a copy of this software and associated documentation files
# (the "Software"), to deal in the Software without restriction,
# including without limitation the rights to use, copy, modify, merge,
# publish, distribute, sublicense, and/or sell copies of the Software,
# and to permit persons to whom the Software is furnished to do so,
# subject to the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS
# BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN
# ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN
# CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
# SOFTWARE.


import argparse
import json
import sys
from typing import Any, Callable, Dict, List, Optional

from bitcoinx import Script

from .bitcoin import cash_address_to_script, classify_script, script_to_cash_address
from .derivation import BitcoinxDerivationContext
from .exceptions import TransactionDecodeError, UnsupportedAddressType
from .logs import logs
from .networks import DEFAULT_NETWORK, NETWORKS
from .simple_config import SimpleConfig
from .transaction import PartiallySignedTransaction, UnsignedScriptSig

logger = logs.get_logger("commands")

known_commands: Dict[str, 'Command'] = {}


class Command:
    def __init__(self, func: Callable[..., Any]) -> None:
        self.name = func.__name__
        self.description = func.__doc__
        self.help = self.description.split('.')[0] if self.description else None

        varnames = func.__code__.co_varnames[1:func.__code__.co_argcount]
        self.params = list(varnames)

    def __repr__(self) -> str:
        return "<Command {}>".format(self)

    def __str__(self) -> str:
        return "{}({})".format(self.name, ", ".join(self.params))


def command(func: Callable[..., Any]) -> Callable[..., Any]:
    global known_commands
    known_commands[func.__name__] = Command(func)
    return func


class Commands:
    def __init__(self, config: SimpleConfig) -> None:
        self.config = config
        self._network = config.get_network()
        self._context = BitcoinxDerivationContext()

    @command
    def commands(self) -> str:
        """List of commands"""
        return ' '.join(sorted(k for k in known_commands.keys()))

    @command
    def version(self) -> str:
        """Return the version of bch-tx-editor."""
        from .version import PACKAGE_VERSION
        return PACKAGE_VERSION

    @command
    def decode(self, tx: str) -> Dict[str, Any]:
        """Describe a partially signed transaction. Locking scripts are recovered for unsigned
        inputs where the placeholder allows it."""
        transaction = PartiallySignedTransaction.from_hex(tx)
        return transaction.to_dict(self._context, self._network)

    @command
    def address(self, script: str) -> str:
        """Convert a locking script to a cash address."""
        return script_to_cash_address(Script(bytes.fromhex(script)), self._network)

    @command
    def addresstoscript(self, address: str) -> Dict[str, Any]:
        """Convert a cash address or legacy address to a locking script."""
        script = cash_address_to_script(address, self._network)
        return { "script": bytes(script).hex(), "kind": classify_script(script).name }

    @command
    def scriptsig(self, script: str) -> Dict[str, Any]:
        """Recover the locking script for a placeholder unlocking script."""
        script_sig = UnsignedScriptSig.from_hex(script)
        script_pubkey = script_sig.script_pubkey(self._context)
        result = script_sig.to_dict()
        result["script_pubkey"] = None if script_pubkey is None else bytes(script_pubkey).hex()
        if script_pubkey is not None:
            try:
                result["address"] = script_to_cash_address(script_pubkey, self._network)
            except UnsupportedAddressType:
                result["address"] = None
        return result

    @command
    def getconfig(self, key: str) -> Any:
        """Return a configuration variable."""
        return self.config.get(key)

    @command
    def setconfig(self, key: str, value: str) -> bool:
        """Set a configuration variable."""
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value
        self.config.set_key(key, parsed_value)
        return True


param_descriptions = {
    'tx': 'Serialized transaction (hexadecimal)',
    'script': 'Script (hexadecimal)',
    'address': 'Cash address or legacy address',
    'key': 'Variable name',
    'value': 'Variable value',
}


def add_global_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group('global options')
    group.add_argument("-v", "--verbose", action="store", dest="verbose",
                       const='info', default='warning', nargs='?',
                       choices = ('debug', 'info', 'warning', 'error'),
                       help="Set logging verbosity")
    group.add_argument("-D", "--dir", dest="bch_tx_editor_path", help="bch-tx-editor directory")
    group.add_argument("-n", "--network", dest="network", default=None,
                       choices=sorted(NETWORKS),
                       help=f"Select the network (default {DEFAULT_NETWORK.NAME})")


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        epilog="Run 'bch-tx-editor <command> --help' to see the help for a command")
    subparsers = parser.add_subparsers(dest='cmd', metavar='<command>')
    subparsers.required = True

    for command_name in sorted(known_commands.keys()):
        command = known_commands[command_name]
        subparser = subparsers.add_parser(command_name, help=command.help,
            description=command.description)
        add_global_options(subparser)
        for param in command.params:
            subparser.add_argument(param, help=param_descriptions.get(param, ''))
    return parser


def main(argv: Optional[List[str]]=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)
    logs.set_level(args.verbose)

    config_options = vars(args)
    cmdname = config_options.pop('cmd')
    config = SimpleConfig(config_options)

    cmd = known_commands[cmdname]
    try:
        commands = Commands(config)
        func = getattr(commands, cmd.name)
        result = func(*[ config_options[param] for param in cmd.params ])
    except (TransactionDecodeError, UnsupportedAddressType, ValueError) as e:
        logger.debug("command '%s' failed", cmdname, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    if isinstance(result, str):
        print(result)
    else:
        print(json.dumps(result, indent=4, sort_keys=True))
    return 0


if __name__ == '__main__':
    sys.exit(main())
