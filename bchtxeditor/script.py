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
import struct
from typing import Generator, NamedTuple, Sequence

from bitcoinx import Ops, pack_byte, push_int, push_item

from .exceptions import InvalidScriptStructure


class ScriptOp(NamedTuple):
    opcode: int
    # Only push operations have data, with `OP_0` pushing an empty item.
    data: bytes | None

    def is_push(self) -> bool:
        return self.data is not None


def script_GetOp(script: bytes) -> Generator[ScriptOp, None, None]:
    """
    Iterate over the operations in the script.

    Unlike the tolerant parsing used when looking for addresses in arbitrary scripts, this is
    strict. Raises `InvalidScriptStructure` if a push length prefix or push data runs past the
    end of the script.
    """
    i = 0
    blen = len(script)
    while i < blen:
        opcode = script[i]
        i += 1

        if opcode > Ops.OP_PUSHDATA4:
            yield ScriptOp(opcode, None)
            continue

        nSize = opcode
        try:
            if opcode == Ops.OP_PUSHDATA1:
                (nSize,) = struct.unpack_from('<B', script, i)
                i += 1
            elif opcode == Ops.OP_PUSHDATA2:
                (nSize,) = struct.unpack_from('<H', script, i)
                i += 2
            elif opcode == Ops.OP_PUSHDATA4:
                (nSize,) = struct.unpack_from('<I', script, i)
                i += 4
        except struct.error:
            raise InvalidScriptStructure(f"truncated push length at offset {i}") from None
        if i + nSize > blen:
            raise InvalidScriptStructure(f"push of {nSize} bytes at offset {i} exceeds script")
        yield ScriptOp(opcode, script[i:i + nSize])
        i += nSize


def decode_script_ops(script: bytes) -> list[ScriptOp]:
    return list(script_GetOp(script))


def is_valid_script(script: bytes) -> bool:
    """ Whether the script tokenizes without any truncated pushes. """
    try:
        decode_script_ops(script)
    except InvalidScriptStructure:
        return False
    return True


def small_int_value(opcode: int) -> int | None:
    if Ops.OP_1 <= opcode <= Ops.OP_16:
        return opcode - Ops.OP_1 + 1
    return None


class MultisigTemplate(NamedTuple):
    threshold: int
    # The pushed public key, or placeholder, in each key position.
    slots: tuple[bytes, ...]

    @property
    def key_count(self) -> int:
        return len(self.slots)

    def to_script_bytes(self) -> bytes:
        return to_bare_multisig_script_bytes(self.slots, self.threshold)

    def substitute(self, public_keys_bytes: Sequence[bytes]) -> MultisigTemplate:
        """ Replace the slots in order, keeping any trailing slots with nothing to replace them. """
        slots = tuple(public_keys_bytes) + self.slots[len(public_keys_bytes):]
        return MultisigTemplate(self.threshold, slots[:len(self.slots)])


def parse_multisig_template(script: bytes) -> MultisigTemplate | None:
    """
    Match `OP_m <slot_1> ... <slot_n> OP_n OP_CHECKMULTISIG` where the declared `n` is the
    number of slot pushes and `1 <= m <= n`. Returns `None` if the script is anything else.
    """
    try:
        decoded = decode_script_ops(script)
    except InvalidScriptStructure:
        return None

    if len(decoded) < 4 or decoded[-1].opcode != Ops.OP_CHECKMULTISIG:
        return None
    m = small_int_value(decoded[0].opcode)
    n = small_int_value(decoded[-2].opcode)
    if m is None or n is None:
        return None
    slot_ops = decoded[1:-2]
    if not all(op.is_push() for op in slot_ops):
        return None
    if len(slot_ops) != n or not 1 <= m <= n:
        return None
    return MultisigTemplate(m, tuple(op.data for op in slot_ops if op.data is not None))


def to_bare_multisig_script_bytes(public_key_bytes_list: Sequence[bytes], threshold: int) -> bytes:
    assert 1 <= threshold <= len(public_key_bytes_list) <= 16
    parts = [push_int(threshold)]
    parts.extend(push_item(public_key_bytes) for public_key_bytes in public_key_bytes_list)
    parts.append(push_int(len(public_key_bytes_list)))
    parts.append(pack_byte(Ops.OP_CHECKMULTISIG))
    return b''.join(parts)
