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


from __future__ import annotations
from copy import deepcopy
import json
import os
import stat
import sys
import threading
from typing import Any, Callable, cast, Type, TypeVar

from .logs import logs
from .networks import DEFAULT_NETWORK, network_from_name, NetworkType
from .util import make_dir


logger = logs.get_logger("config")

T = TypeVar('T')


def user_dir() -> str:
    if sys.platform == "win32":
        app_dir = os.environ.get("APPDATA") or os.environ.get("LOCALAPPDATA")
        return os.path.join(app_dir or ".", "BchTxEditor")
    home_dir = os.environ.get("HOME", ".")
    return os.path.join(home_dir, ".bch-tx-editor")


class SimpleConfig:
    """
    The SimpleConfig class is responsible for handling operations involving
    configuration files.

    There are two different sources of possible configuration values:
        1. Command line options.
        2. User configuration (in the user's config directory)
    They are taken in order (1. overrides config options set in 2.)
    """

    def __init__(self, options: dict[str, Any]|None=None,
            read_user_config_function: Callable[[str], dict[str, Any]]|None=None,
            read_user_dir_function: Callable[[], str]|None=None) -> None:
        if options is None:
            options = {}

        # This lock needs to be acquired for updating and reading the config in
        # a thread-safe way.
        self.lock = threading.RLock()

        # The following two functions are there for dependency injection when
        # testing.
        if read_user_config_function is None:
            read_user_config_function = read_user_config
        self.user_dir = read_user_dir_function if read_user_dir_function is not None \
            else user_dir

        # The command line options
        self.cmdline_options = {
            key: value for key, value in deepcopy(options).items() if value is not None }

        # Set self.path and read the user config
        self.user_config: dict[str, Any] = {}  # for self.get in data_path()
        self.path = self.data_path()
        self.user_config = read_user_config_function(self.path)

    def data_path(self) -> str:
        # Read bch_tx_editor_path from command line
        # Otherwise use the user's default data directory.
        path = cast(str, self.get('bch_tx_editor_path'))
        if path is None:
            path = self.user_dir()
        make_dir(path)

        network_name = self.get('network')
        if network_name is not None and network_name != DEFAULT_NETWORK.NAME:
            path = os.path.join(path, network_name)
            make_dir(path)
        logger.debug("bch-tx-editor directory '%s'", path)
        return os.path.abspath(path)

    def file_path(self, file_name: str) -> str|None:
        if self.path:
            return os.path.join(self.path, file_name)
        return None

    def set_key(self, key: str, value: Any, save: bool=True) -> None:
        if not self.is_modifiable(key):
            logger.warning("Not changing config key '%s' set on the command line", key)
            return
        with self.lock:
            if value is not None:
                self.user_config[key] = value
            else:
                self.user_config.pop(key, None)
            if save:
                self.save_user_config()

    def get(self, key: str, default: Any=None) -> Any|None:
        with self.lock:
            out = self.cmdline_options.get(key)
            if out is None:
                out = self.user_config.get(key, default)
        return out

    def get_explicit_type(self, return_type: Type[T], key: str, default: T) -> T:
        with self.lock:
            value: T|None = self.cmdline_options.get(key)
            if value is None:
                value = cast(T, self.user_config.get(key, default))
        assert isinstance(value, return_type)
        return value

    def get_network(self) -> NetworkType:
        """
        Raises `ValueError` if the configured network name is not a known network.
        """
        return network_from_name(self.get_explicit_type(str, 'network', DEFAULT_NETWORK.NAME))

    def is_modifiable(self, key: str) -> bool:
        return key not in self.cmdline_options

    def save_user_config(self) -> None:
        path = self.file_path("config")
        if path is None:
            return
        s = json.dumps(self.user_config, indent=4, sort_keys=True)
        with open(path, "w", encoding='utf-8') as f:
            f.write(s)
        os.chmod(path, stat.S_IREAD | stat.S_IWRITE)


def read_user_config(path: str) -> dict[str, Any]:
    """Parse and return the user config settings as a dictionary."""
    if not path:
        return {}
    config_path = os.path.join(path, "config")
    if not os.path.exists(config_path):
        return {}
    try:
        with open(config_path, "r", encoding='utf-8') as f:
            data = f.read()
        result = json.loads(data)
    except Exception:
        logger.exception("Cannot read config file %s.", config_path)
        return {}
    if not type(result) is dict:
        return {}
    return result
