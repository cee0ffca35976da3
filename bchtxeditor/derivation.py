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


"""
Public key derivation for placeholder unlocking scripts.

Recovering the locking script an unsigned input spends from requires deriving child public keys
from an extended public key. The elliptic curve work is not done here, it is delegated to a
derivation context object which is passed explicitly to anything that needs it. The default
context is backed by `bitcoinx`, tests may substitute their own.
"""

from __future__ import annotations
from typing import Any, Protocol

import attr
from bitcoinx import base58_decode_check, base58_encode_check, bip32_key_from_string, \
    BIP32PublicKey, hash160, pack_le_uint16, pack_le_uint32, unpack_le_uint16, unpack_le_uint32

from .constants import BIP32_SERIALISED_KEY_LENGTH, DERIVATION_INDEX_ESCAPE, DerivationPath, \
    HARDENED_INDEX, XPublicKeyPrefix
from .exceptions import InvalidScriptStructure


class DerivationContext(Protocol):
    """
    The capabilities needed to turn an extended public key record into a usable public key.

    Implementations raise `ValueError` for keys they cannot decode or derive.
    """
    def decode_extended_public_key(self, raw: bytes) -> Any:
        ...

    def derive_child(self, key: Any, index: int) -> Any:
        ...

    def public_key_bytes(self, key: Any) -> bytes:
        ...

    def public_key_hash(self, key: Any) -> bytes:
        ...


class BitcoinxDerivationContext:
    def decode_extended_public_key(self, raw: bytes) -> BIP32PublicKey:
        if len(raw) != BIP32_SERIALISED_KEY_LENGTH:
            raise ValueError(f"extended key must have length {BIP32_SERIALISED_KEY_LENGTH}, "
                f"got {len(raw)}")
        try:
            key = bip32_key_from_string(base58_encode_check(raw))
        except Exception as e:
            # The bitcoinx exceptions for unknown version bytes and invalid points vary.
            raise ValueError(f"invalid extended public key: {e}") from e
        if not isinstance(key, BIP32PublicKey):
            raise ValueError("not an extended public key")
        return key

    def derive_child(self, key: BIP32PublicKey, index: int) -> BIP32PublicKey:
        if index >= HARDENED_INDEX:
            raise ValueError(f"cannot derive hardened index {index} from a public key")
        return key.child(index)

    def public_key_bytes(self, key: BIP32PublicKey) -> bytes:
        return bytes(key.to_bytes(compressed=True))

    def public_key_hash(self, key: BIP32PublicKey) -> bytes:
        return bytes(hash160(self.public_key_bytes(key)))


def pack_compact_derivation_path(derivation_path: DerivationPath) -> bytes:
    parts = []
    for index in derivation_path:
        if index < DERIVATION_INDEX_ESCAPE:
            parts.append(pack_le_uint16(index))
        else:
            parts.append(pack_le_uint16(DERIVATION_INDEX_ESCAPE) + pack_le_uint32(index))
    return b''.join(parts)

def unpack_compact_derivation_path(data: bytes) -> DerivationPath:
    """
    Raises `InvalidScriptStructure` if the data does not divide exactly into path steps.
    """
    path: list[int] = []
    offset = 0
    while offset < len(data):
        if offset + 2 > len(data):
            raise InvalidScriptStructure("derivation path has a trailing byte")
        (index,) = unpack_le_uint16(data[offset:offset+2])
        offset += 2
        if index == DERIVATION_INDEX_ESCAPE:
            if offset + 4 > len(data):
                raise InvalidScriptStructure("derivation path escape is truncated")
            (index,) = unpack_le_uint32(data[offset:offset+4])
            offset += 4
        path.append(index)
    return tuple(path)


@attr.s(slots=True, frozen=True, repr=False)
class ExtendedKeyRecord:
    """
    An extended public key and the path to derive from it, in the legacy Electrum
    serialisation of `0xFF || serialised BIP32 key || compact derivation path`.
    """
    extended_key: bytes = attr.ib()
    derivation_path: DerivationPath = attr.ib(converter=tuple)

    def __attrs_post_init__(self) -> None:
        if len(self.extended_key) != BIP32_SERIALISED_KEY_LENGTH:
            raise ValueError(f"extended key must have length {BIP32_SERIALISED_KEY_LENGTH}")
        if not all(0 <= index <= 0xffffffff for index in self.derivation_path):
            raise ValueError("derivation path index out of range")

    @classmethod
    def from_xpub(cls, xpub: str, derivation_path: DerivationPath) -> ExtendedKeyRecord:
        return cls(bytes(base58_decode_check(xpub)), derivation_path)

    @classmethod
    def from_bytes(cls, raw: bytes) -> ExtendedKeyRecord:
        """
        Raises `InvalidScriptStructure` if the data is not an extended key record.
        """
        if not raw or raw[0] != XPublicKeyPrefix.BIP32:
            raise InvalidScriptStructure("extended key record has wrong prefix")
        if len(raw) < 1 + BIP32_SERIALISED_KEY_LENGTH:
            raise InvalidScriptStructure("extended key record is truncated")
        extended_key = raw[1:1 + BIP32_SERIALISED_KEY_LENGTH]
        path = unpack_compact_derivation_path(raw[1 + BIP32_SERIALISED_KEY_LENGTH:])
        return cls(extended_key, path)

    def to_bytes(self) -> bytes:
        return (bytes([XPublicKeyPrefix.BIP32]) + self.extended_key +
            pack_compact_derivation_path(self.derivation_path))

    def xpub(self) -> str:
        return str(base58_encode_check(self.extended_key))

    def derive(self, context: DerivationContext) -> Any:
        """
        Raises `ValueError` if the context cannot decode the key or derive the path.
        """
        key = context.decode_extended_public_key(self.extended_key)
        for index in self.derivation_path:
            key = context.derive_child(key, index)
        return key

    def __repr__(self) -> str:
        return f"ExtendedKeyRecord(xpub={self.xpub()!r}, derivation_path={self.derivation_path})"
