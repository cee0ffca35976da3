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
CashToken data, as carried on transaction outputs and remembered on unsigned inputs.

The serialised form is the one used on the wire, following the token announcement opcode:

    category_id[32] bitfield[1] [commitment_length commitment] [amount]

where the optional fields are present according to the structure bits of the bitfield, and
both the commitment length and the amount are variable length integers.
"""

from __future__ import annotations
from io import BytesIO
from typing import Any

import attr
from bitcoinx import hash_to_hex_str, hex_str_to_hash, pack_byte, pack_varbytes, pack_varint, \
    read_varint

from .constants import MAX_TOKEN_AMOUNT, NFTCapability, TOKEN_CAPABILITY_MASK, TokenStructure
from .exceptions import InvalidTokenData, MalformedTokenPayload
from .util import read_exact, ReadBytesFunc, truncation_errors


CATEGORY_ID_LENGTH = 32


@attr.s(slots=True, frozen=True, repr=False)
class TokenData:
    # The category id bytes in wire order, which is the reverse of the displayed hex.
    category_id: bytes = attr.ib()
    amount: int = attr.ib(default=0)
    has_nft: bool = attr.ib(default=False)
    capability: NFTCapability = attr.ib(default=NFTCapability.NONE, converter=NFTCapability)
    commitment: bytes = attr.ib(default=b'')

    def __attrs_post_init__(self) -> None:
        if len(self.category_id) != CATEGORY_ID_LENGTH:
            raise InvalidTokenData(f"category id must be {CATEGORY_ID_LENGTH} bytes, "
                f"got {len(self.category_id)}")
        if not 0 <= self.amount <= MAX_TOKEN_AMOUNT:
            raise InvalidTokenData(f"fungible amount {self.amount} out of range")
        if not self.has_nft:
            if self.capability != NFTCapability.NONE:
                raise InvalidTokenData("capability requires an NFT")
            if self.commitment:
                raise InvalidTokenData("commitment requires an NFT")
            if self.amount == 0:
                raise InvalidTokenData("token data must have a fungible amount or an NFT")

    @classmethod
    def from_fields(cls, category_id_hex: str, ft_amount: int | None=None,
            nft_capability: NFTCapability | None=None, nft_commitment_hex: str="") -> TokenData:
        """
        Build token data from the values a user would enter. The category id is given in its
        displayed form. A fungible amount of `None` means no fungible tokens, and an NFT
        capability of `None` means there is no NFT.

        Raises `InvalidTokenData` for values that do not make a valid token.
        """
        if ft_amount is not None and ft_amount == 0:
            raise InvalidTokenData("FT amount must be nonzero")
        has_nft = nft_capability is not None
        if not has_nft and nft_commitment_hex:
            raise InvalidTokenData("commitment requires an NFT")
        try:
            category_id = hex_str_to_hash(category_id_hex.strip())
            commitment = bytes.fromhex(nft_commitment_hex)
        except ValueError as e:
            raise InvalidTokenData(str(e)) from e
        return cls(category_id, amount=ft_amount or 0, has_nft=has_nft,
            capability=nft_capability if nft_capability is not None else NFTCapability.NONE,
            commitment=commitment)

    @property
    def bitfield(self) -> int:
        # Always derived from the fields, so the structure bits can never disagree with them.
        bitfield = 0
        if self.amount:
            bitfield |= TokenStructure.HAS_AMOUNT
        if self.has_nft:
            bitfield |= TokenStructure.HAS_NFT | self.capability
        if self.commitment:
            bitfield |= TokenStructure.HAS_COMMITMENT_LENGTH
        return bitfield

    def has_amount(self) -> bool:
        return self.amount != 0

    def has_commitment_length(self) -> bool:
        return len(self.commitment) > 0

    def category_id_hex(self) -> str:
        return hash_to_hex_str(self.category_id)

    def to_bytes(self) -> bytes:
        parts = [ self.category_id, pack_byte(self.bitfield) ]
        if self.commitment:
            parts.append(pack_varbytes(self.commitment))
        if self.amount:
            parts.append(pack_varint(self.amount))
        return b''.join(parts)

    @classmethod
    def read(cls, read: ReadBytesFunc) -> TokenData:
        """
        Raises `MalformedTokenPayload` if the bitfield is not one a valid token can have, or
        the optional fields it declares are not valid. Raises `TruncatedInput` if the stream
        ends before the declared fields do.
        """
        with truncation_errors():
            category_id = read_exact(read, CATEGORY_ID_LENGTH)
            bitfield = read_exact(read, 1)[0]
            if bitfield & TokenStructure.RESERVED:
                raise MalformedTokenPayload("reserved token bitfield bit set")
            capability = bitfield & TOKEN_CAPABILITY_MASK
            if capability > NFTCapability.MINTING:
                raise MalformedTokenPayload(f"unknown NFT capability {capability}")

            has_nft = bool(bitfield & TokenStructure.HAS_NFT)
            has_amount = bool(bitfield & TokenStructure.HAS_AMOUNT)
            has_commitment_length = bool(bitfield & TokenStructure.HAS_COMMITMENT_LENGTH)
            if not has_nft:
                if capability != NFTCapability.NONE:
                    raise MalformedTokenPayload("NFT capability without an NFT")
                if has_commitment_length:
                    raise MalformedTokenPayload("commitment without an NFT")
                if not has_amount:
                    raise MalformedTokenPayload("token has neither an NFT nor an amount")

            commitment = b''
            if has_commitment_length:
                commitment = read_exact(read, read_varint(read))
                if not commitment:
                    raise MalformedTokenPayload("zero length commitment")

            amount = 0
            if has_amount:
                amount = read_varint(read)
                if not 0 < amount <= MAX_TOKEN_AMOUNT:
                    raise MalformedTokenPayload(f"fungible amount {amount} out of range")

        return cls(category_id, amount=amount, has_nft=has_nft,
            capability=NFTCapability(capability), commitment=commitment)

    @classmethod
    def from_bytes(cls, raw: bytes) -> TokenData:
        stream = BytesIO(raw)
        token_data = cls.read(stream.read)
        if stream.tell() != len(raw):
            raise MalformedTokenPayload("trailing data after token payload")
        return token_data

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = { "category": self.category_id_hex() }
        if self.amount:
            result["amount"] = self.amount
        if self.has_nft:
            result["nft"] = {
                "capability": self.capability.name.lower(),
                "commitment": self.commitment.hex(),
            }
        return result

    def __repr__(self) -> str:
        return (f'TokenData(category="{self.category_id_hex()}", amount={self.amount}, '
            f'has_nft={self.has_nft}, capability={self.capability.name}, '
            f'commitment="{self.commitment.hex()}")')
