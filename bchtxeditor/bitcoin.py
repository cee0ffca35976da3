# -*- coding: utf-8 -*-
#
# Electrum - lightweight Bitcoin client
# Copyright (C) 2011 thomasv@gitorious
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
from typing import Union

from bitcoinx import Address, Base58Error, cashaddr, hash160, Ops, pack_byte, push_item, Script

from .constants import CashAddressType, P2PKH_ADDRESS_TYPES, P2SH_ADDRESS_TYPES, ScriptKind
from .exceptions import UnsupportedAddressType
from .networks import NetworkType

################################## transactions

COIN = 100000000

ScriptLike = Union[bytes, Script]


############## locking script shapes ######################

def is_p2pkh(script: ScriptLike) -> bool:
    s = bytes(script)
    return (len(s) == 25 and s[0] == Ops.OP_DUP and s[1] == Ops.OP_HASH160 and s[2] == 20
        and s[23] == Ops.OP_EQUALVERIFY and s[24] == Ops.OP_CHECKSIG)

def is_p2sh(script: ScriptLike) -> bool:
    s = bytes(script)
    return len(s) == 23 and s[0] == Ops.OP_HASH160 and s[1] == 20 and s[22] == Ops.OP_EQUAL

def is_p2sh32(script: ScriptLike) -> bool:
    s = bytes(script)
    return len(s) == 35 and s[0] == Ops.OP_HASH256 and s[1] == 32 and s[34] == Ops.OP_EQUAL

def classify_script(script: ScriptLike) -> ScriptKind:
    if is_p2pkh(script):
        return ScriptKind.P2PKH
    if is_p2sh(script):
        return ScriptKind.P2SH20
    if is_p2sh32(script):
        return ScriptKind.P2SH32
    return ScriptKind.UNKNOWN

def script_hash(script: ScriptLike) -> tuple[ScriptKind, bytes]:
    """
    Get the hash that a recognised locking script pays to.

    Raises `UnsupportedAddressType` if the script is not one of the standard shapes.
    """
    s = bytes(script)
    kind = classify_script(s)
    if kind == ScriptKind.P2PKH:
        return kind, s[3:23]
    elif kind == ScriptKind.P2SH20:
        return kind, s[2:22]
    elif kind == ScriptKind.P2SH32:
        return kind, s[2:34]
    raise UnsupportedAddressType("unknown script type")


def p2pkh_script(hash_bytes: bytes) -> Script:
    assert len(hash_bytes) == 20
    return Script(b''.join((pack_byte(Ops.OP_DUP), pack_byte(Ops.OP_HASH160),
        push_item(hash_bytes), pack_byte(Ops.OP_EQUALVERIFY), pack_byte(Ops.OP_CHECKSIG))))

def p2sh_script(hash_bytes: bytes) -> Script:
    if len(hash_bytes) == 20:
        return Script(pack_byte(Ops.OP_HASH160) + push_item(hash_bytes) + pack_byte(Ops.OP_EQUAL))
    assert len(hash_bytes) == 32
    return Script(pack_byte(Ops.OP_HASH256) + push_item(hash_bytes) + pack_byte(Ops.OP_EQUAL))

def p2sh_script_for_redeem_script(redeem_script: bytes) -> Script:
    return p2sh_script(hash160(redeem_script))

def build_script(address_kind: int, hash_bytes: bytes) -> Script:
    """
    Construct the locking script for a decoded cash address payload.

    Raises `UnsupportedAddressType` if the payload type tag is not one we know, or the hash is
    not a size that type can have.
    """
    if address_kind in P2PKH_ADDRESS_TYPES:
        if len(hash_bytes) == 20:
            return p2pkh_script(hash_bytes)
    elif address_kind in P2SH_ADDRESS_TYPES:
        if len(hash_bytes) in (20, 32):
            return p2sh_script(hash_bytes)
    else:
        raise UnsupportedAddressType(f"unknown cash address type {address_kind}")
    raise UnsupportedAddressType(f"cash address type {address_kind} cannot have a "
        f"{len(hash_bytes)} byte hash")


############## address text ######################

def script_to_cash_address(script: ScriptLike, network: NetworkType) -> str:
    """
    Raises `UnsupportedAddressType` if the script has no address form.
    """
    kind, hash_bytes = script_hash(script)
    address_type = CashAddressType.P2PKH if kind == ScriptKind.P2PKH else CashAddressType.P2SH
    # This is the external checksummed encoding, we only provide the payload to it.
    return str(cashaddr._encode_full(network.CASHADDR_PREFIX, int(address_type), hash_bytes))

def cash_address_to_script(text: str, network: NetworkType) -> Script:
    """
    Accepts a cash address, with or without the network prefix, or a legacy base58 address.

    Raises `UnsupportedAddressType` if the text is neither, or decodes to a payload type
    that has no locking script we know how to build.
    """
    text = text.strip()
    cash_address_text = text if ":" in text else f"{network.CASHADDR_PREFIX}:{text}"
    try:
        prefix, address_kind, hash_bytes = cashaddr.decode(cash_address_text)
    except ValueError as cash_address_error:
        try:
            address = Address.from_string(text, network.COIN)
        except (Base58Error, ValueError):
            raise UnsupportedAddressType(f"invalid address '{text}': {cash_address_error}") \
                from None
        return address.to_script()

    if prefix.lower() != network.CASHADDR_PREFIX:
        raise UnsupportedAddressType(f"address prefix '{prefix}' is not valid for "
            f"{network.NAME}")
    return build_script(address_kind, hash_bytes)
