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
from contextlib import contextmanager
import os
import stat
from struct import error as struct_error
from typing import Callable, Iterator, TypeVar

from bitcoinx import read_varint

from .constants import MAX_VEC_SIZE
from .exceptions import TruncatedInput


ReadBytesFunc = Callable[[int], bytes]
T = TypeVar('T')


@contextmanager
def truncation_errors() -> Iterator[None]:
    """
    The `bitcoinx` readers raise `struct.error` when the stream runs out. Callers of this
    package only ever see `TruncatedInput` for that.
    """
    try:
        yield
    except struct_error as e:
        raise TruncatedInput(str(e)) from e


def read_exact(read: ReadBytesFunc, n: int) -> bytes:
    # No field of a transaction can be longer than the largest transaction.
    if n > MAX_VEC_SIZE:
        raise TruncatedInput(f'declared length {n:,d} exceeds {MAX_VEC_SIZE:,d} bytes')
    result = read(n)
    if len(result) != n:
        raise TruncatedInput(f'expected {n:,d} bytes, got {len(result):,d}')
    return result


# Reimplemented from bitcoinx, so that a short read is reported as truncation.
def xread_varbytes(read: ReadBytesFunc) -> bytes:
    return read_exact(read, read_varint(read))


def capped_reservation(count: int, min_item_size: int) -> int:
    """
    How many items it is reasonable to reserve space for up front, given a declared count
    that has not yet been backed by any data.
    """
    assert min_item_size > 0
    return min(count, MAX_VEC_SIZE // 4 // min_item_size)


# Duplicated and extended from the bitcoinx implementation.
def read_capped_list(read: ReadBytesFunc, read_one: Callable[[ReadBytesFunc], T],
        min_item_size: int) -> list[T]:
    '''Return a list of items.

    Each item is read with read_one, the stream begins with a count of the items. The count is
    not trusted for the initial reservation, as a short stream can declare any count it likes.
    A stream that is really that long will still be read in full, the list grows as it goes.'''
    count = read_varint(read)
    reserved = capped_reservation(count, min_item_size)
    result: list[T | None] = [None] * reserved
    for index in range(count):
        item = read_one(read)
        if index < reserved:
            result[index] = item
        else:
            result.append(item)
    return result # type: ignore[return-value]


def make_dir(path: str) -> None:
    # Make directory if it does not yet exist.
    if not os.path.exists(path):
        if os.path.islink(path):
            raise Exception('Dangling link: ' + path)
        os.mkdir(path)
        os.chmod(path, stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR)
