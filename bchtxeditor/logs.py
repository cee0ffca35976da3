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


'''bch-tx-editor logging facilities.

Everything logs below the `bchtxeditor` logger, so that an application using the package as a
library keeps control of the root logger. The command line tool writes to standard error.'''

import logging
import sys
from typing import Union


PACKAGE_LOGGER_NAME = 'bchtxeditor'


class Logs(object):
    '''Owns the package logger and its standard error handler.'''

    def __init__(self) -> None:
        # Warnings and above until the command line sets a level.
        self.package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
        self.package_logger.setLevel(logging.WARNING)
        self.stream_handler = logging.StreamHandler(sys.stderr)
        self.stream_handler.setFormatter(
            logging.Formatter('%(asctime)s:' + logging.BASIC_FORMAT))
        self.package_logger.addHandler(self.stream_handler)

    def get_logger(self, name: str) -> logging.Logger:
        return self.package_logger.getChild(name)

    def set_level(self, level: Union[str, int]) -> None:
        '''Level can be a string, such as "info", or a constant from logging module.'''
        if isinstance(level, str):
            level = level.upper()
        self.package_logger.setLevel(level)


logs = Logs()
