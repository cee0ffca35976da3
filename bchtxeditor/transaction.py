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
Partially signed Bitcoin Cash transactions.

The serialisation is the ordinary transaction serialisation with the one difference that an
unsigned input carries a placeholder unlocking script, and is followed by the value of the
output it spends. The placeholder script identifies the key, keys or locking script needed to
sign the input and can be told apart from a real unlocking script by its structure.

Single key placeholder: `PUSH(0xFF) PUSH(payload)` where the payload is one of

    0xFD || locking script
    0xFF || serialised BIP32 public key || compact derivation path
    0x02, 0x03 or 0x04 prefixed public key bytes

Multisig placeholder: `PUSH() PUSH(key_1) ... PUSH(key_n) PUSH(redeem script template)`.

If the spent output carries CashTokens, the value of an unsigned input is written as the
extension sentinel, then the real value as a varint, then the token payload wrapped in the token
prefix.
"""

from __future__ import annotations
from io import BytesIO
from typing import Any, NamedTuple, Sequence, Union

import attr
from bitcoinx import double_sha256, hash160, hash_to_hex_str, hex_str_to_hash, pack_le_int32, \
    pack_le_uint32, pack_le_uint64, pack_list, pack_varbytes, pack_varint, push_item, \
    read_le_int32, read_le_uint32, read_le_uint64, read_varint, Script

from .bitcoin import p2pkh_script, p2sh_script_for_redeem_script, script_to_cash_address
from .constants import DEFAULT_SEQUENCE, MINIMUM_TX_INPUT_SIZE, MINIMUM_TX_OUTPUT_SIZE, \
    NO_SIGNATURE, PREFIX_TOKEN, PUBLIC_KEY_PREFIXES, RECOGNISED_XPUBLIC_KEY_PREFIXES, \
    VALUE_EXTENSION_SENTINEL, VALUE_EXTENSION_THRESHOLD, VALUE_EXTENSION_VERSION, \
    XPublicKeyPrefix
from .derivation import DerivationContext, ExtendedKeyRecord
from .exceptions import InvalidScriptStructure, MalformedTokenPayload, TransactionDecodeError, \
    UnknownExtensionVersion, UnsupportedAddressType
from .logs import logs
from .networks import NetworkType
from .script import decode_script_ops, is_valid_script, MultisigTemplate, \
    parse_multisig_template, ScriptOp
from .token_data import TokenData
from .util import read_capped_list, read_exact, ReadBytesFunc, truncation_errors, xread_varbytes


logger = logs.get_logger("transaction")

# Written into the key slots of a multisig redeem script template before the keys are derived.
dummy_public_key_bytes = bytes(range(3, 36))

COINBASE_PREV_HASH = bytes(32)
COINBASE_PREV_INDEX = 0xffffffff


class Outpoint(NamedTuple):
    tx_hash: bytes
    txo_index: int

    @classmethod
    def read(cls, read: ReadBytesFunc) -> Outpoint:
        return cls(read_exact(read, 32), read_le_uint32(read))

    def to_bytes(self) -> bytes:
        return self.tx_hash + pack_le_uint32(self.txo_index)

    def is_coinbase(self) -> bool:
        return self.tx_hash == COINBASE_PREV_HASH and self.txo_index == COINBASE_PREV_INDEX

    def __repr__(self) -> str:
        return f'Outpoint("{hash_to_hex_str(self.tx_hash)}", {self.txo_index})'


def _x_public_key_payload_recognised(payload: bytes) -> bool:
    return len(payload) > 0 and payload[0] in RECOGNISED_XPUBLIC_KEY_PREFIXES


def is_unsigned_script_sig(script_sig: bytes) -> bool:
    """
    Whether an unlocking script has the structure of a placeholder. This is a structural check
    only, nothing is derived. Anything that does not match exactly is a signed script.
    """
    try:
        decoded = decode_script_ops(script_sig)
    except InvalidScriptStructure:
        return False
    if not decoded or not all(op.is_push() for op in decoded):
        return False

    first_push = decoded[0].data
    if first_push == NO_SIGNATURE:
        if len(decoded) != 2:
            return False
        payload = decoded[1].data
        assert payload is not None
        if payload[:1] == bytes([XPublicKeyPrefix.SCRIPT_PUBKEY]):
            return is_valid_script(payload[1:])
        return _x_public_key_payload_recognised(payload)

    if first_push == b'':
        if len(decoded) < 3:
            return False
        assert decoded[-1].data is not None
        template = parse_multisig_template(decoded[-1].data)
        if template is None:
            return False
        # The key pushes are matched against `n`, not `m`. Any threshold `1 <= m <= n` is
        # accepted, the parsed template has already checked that range.
        key_pushes = decoded[1:-1]
        if template.key_count != len(key_pushes):
            return False
        # Real signatures are DER encoded and can never look like a key record, so a fully
        # signed multisig script has no recognised key pushes.
        if not all(op.data for op in key_pushes):
            return False
        return any(_x_public_key_payload_recognised(op.data) for op in key_pushes
            if op.data is not None)

    return False


def _is_public_key_bytes(payload: bytes) -> bool:
    if payload[:1] == bytes([XPublicKeyPrefix.UNCOMPRESSED]):
        return len(payload) == 65
    return payload[:1] in (bytes([XPublicKeyPrefix.COMPRESSED_EVEN]),
        bytes([XPublicKeyPrefix.COMPRESSED_ODD])) and len(payload) == 33


def _public_key_bytes(payload: bytes, context: DerivationContext) -> bytes:
    """
    Raises `InvalidScriptStructure` if the payload is neither a public key nor an extended key
    record, and `ValueError` if the context cannot derive the key.
    """
    if payload[:1] == bytes([XPublicKeyPrefix.BIP32]):
        key = ExtendedKeyRecord.from_bytes(payload).derive(context)
        return context.public_key_bytes(key)
    if _is_public_key_bytes(payload):
        return payload
    raise InvalidScriptStructure(f"unsupported key type {payload[:1].hex()}")


@attr.s(slots=True, frozen=True, repr=False)
class UnsignedScriptSig:
    """
    A placeholder unlocking script. The raw bytes are kept as given, so re-encoding reproduces
    exactly what was decoded.
    """
    script: bytes = attr.ib(converter=bytes)

    @classmethod
    def from_script_pubkey(cls, script_pubkey: Script | bytes) -> UnsignedScriptSig:
        payload = bytes([XPublicKeyPrefix.SCRIPT_PUBKEY]) + bytes(script_pubkey)
        return cls(push_item(NO_SIGNATURE) + push_item(payload))

    @classmethod
    def from_extended_key(cls, record: ExtendedKeyRecord) -> UnsignedScriptSig:
        return cls(push_item(NO_SIGNATURE) + push_item(record.to_bytes()))

    @classmethod
    def from_public_key(cls, public_key_bytes: bytes) -> UnsignedScriptSig:
        if not _is_public_key_bytes(public_key_bytes):
            raise ValueError("not a serialised public key")
        return cls(push_item(NO_SIGNATURE) + push_item(public_key_bytes))

    @classmethod
    def from_multisig(cls, records: Sequence[ExtendedKeyRecord], threshold: int) \
            -> UnsignedScriptSig:
        if not 1 <= threshold <= len(records) <= 16:
            raise ValueError(f"invalid multisig threshold {threshold} of {len(records)}")
        template = MultisigTemplate(threshold, (dummy_public_key_bytes,) * len(records))
        parts = [ push_item(b'') ]
        parts.extend(push_item(record.to_bytes()) for record in records)
        parts.append(push_item(template.to_script_bytes()))
        return cls(b''.join(parts))

    @classmethod
    def from_raw_script(cls, raw: bytes) -> UnsignedScriptSig:
        if not is_unsigned_script_sig(raw):
            raise InvalidScriptStructure("not a placeholder unlocking script")
        return cls(raw)

    @classmethod
    def from_hex(cls, text: str) -> UnsignedScriptSig:
        return cls.from_raw_script(bytes.fromhex(text))

    def raw_script(self) -> Script:
        return Script(self.script)

    def to_hex(self) -> str:
        return self.script.hex()

    def is_multisig(self) -> bool:
        return self.script[:1] == push_item(b'')

    def script_pubkey(self, context: DerivationContext) -> Script | None:
        """
        The locking script of the output this placeholder is for, or `None` if that cannot be
        determined from the placeholder.
        """
        try:
            decoded = decode_script_ops(self.script)
            if not decoded:
                raise InvalidScriptStructure("empty placeholder")
            if decoded[0].data == b'':
                return self._multisig_script_pubkey(decoded, context)
            return self._single_key_script_pubkey(decoded, context)
        except (InvalidScriptStructure, ValueError) as e:
            logger.debug("unable to recover locking script for %s: %s", self.to_hex(), e)
            return None

    def _single_key_script_pubkey(self, decoded: list[ScriptOp], context: DerivationContext) \
            -> Script:
        if decoded[0].data != NO_SIGNATURE or len(decoded) != 2 or not decoded[1].data:
            raise InvalidScriptStructure("not a single key placeholder")

        payload = decoded[1].data
        prefix = payload[0]
        if prefix == XPublicKeyPrefix.SCRIPT_PUBKEY:
            return Script(payload[1:])
        if prefix == XPublicKeyPrefix.BIP32:
            key = ExtendedKeyRecord.from_bytes(payload).derive(context)
            return p2pkh_script(context.public_key_hash(key))
        if prefix in PUBLIC_KEY_PREFIXES:
            return p2pkh_script(hash160(_public_key_bytes(payload, context)))
        raise InvalidScriptStructure(f"cannot derive from key type {prefix:#04x}")

    def _multisig_script_pubkey(self, decoded: list[ScriptOp], context: DerivationContext) \
            -> Script:
        if len(decoded) < 3 or not all(op.is_push() for op in decoded):
            raise InvalidScriptStructure("not a multisig placeholder")
        template = parse_multisig_template(decoded[-1].data or b'')
        if template is None:
            raise InvalidScriptStructure("invalid multisig redeem script template")
        key_pushes = decoded[1:-1]
        if len(key_pushes) != template.key_count:
            raise InvalidScriptStructure(f"template has {template.key_count} keys, "
                f"placeholder has {len(key_pushes)}")

        public_keys_bytes = []
        for op, slot in zip(key_pushes, template.slots):
            payload = op.data or b''
            # A bare placeholder or a signature leaves the key in the template slot to be used.
            if payload == NO_SIGNATURE or not _x_public_key_payload_recognised(payload):
                if slot == dummy_public_key_bytes:
                    raise InvalidScriptStructure("no key for a signed multisig position")
                payload = slot
            public_keys_bytes.append(_public_key_bytes(payload, context))
        redeem_script = template.substitute(public_keys_bytes).to_script_bytes()
        return p2sh_script_for_redeem_script(redeem_script)

    def to_dict(self) -> dict[str, Any]:
        return { "script": self.to_hex(), "multisig": self.is_multisig() }

    def __repr__(self) -> str:
        return f'UnsignedScriptSig("{self.to_hex()}")'


def pack_input_value(value: int, token_data: TokenData | None) -> bytes:
    if token_data is None:
        if value >= VALUE_EXTENSION_THRESHOLD:
            raise ValueError(f"value {value} cannot be written without token data")
        return pack_le_uint64(value)
    return (pack_le_uint64(VALUE_EXTENSION_SENTINEL) + pack_varint(value) +
        pack_varbytes(bytes([PREFIX_TOKEN]) + token_data.to_bytes()))


def read_input_value(read: ReadBytesFunc) -> tuple[int, TokenData | None]:
    value = read_le_uint64(read)
    if value < VALUE_EXTENSION_THRESHOLD:
        return value, None

    version = value & 0xf
    if version != VALUE_EXTENSION_VERSION:
        raise UnknownExtensionVersion(f"unknown value extension version {version:#x}")
    value = read_varint(read)
    wrapped_token_data = xread_varbytes(read)
    if wrapped_token_data[:1] != bytes([PREFIX_TOKEN]):
        raise MalformedTokenPayload("extended value does not contain token data")
    return value, TokenData.from_bytes(wrapped_token_data[1:])


@attr.s(slots=True, frozen=True, repr=False)
class SignedTxInput:
    prevout: Outpoint = attr.ib()
    script_sig: Script = attr.ib()
    sequence: int = attr.ib(default=DEFAULT_SEQUENCE)

    def is_complete(self) -> bool:
        return True

    def is_coinbase(self) -> bool:
        return self.prevout.is_coinbase()

    def to_bytes(self) -> bytes:
        return b''.join((
            self.prevout.to_bytes(),
            pack_varbytes(bytes(self.script_sig)),
            pack_le_uint32(self.sequence),
        ))

    def to_dict(self) -> dict[str, Any]:
        return {
            "prev_hash": hash_to_hex_str(self.prevout.tx_hash),
            "prev_idx": self.prevout.txo_index,
            "script_sig": bytes(self.script_sig).hex(),
            "sequence": self.sequence,
            "kind": "coinbase" if self.is_coinbase() else "signed",
        }

    def __repr__(self) -> str:
        return (f'SignedTxInput(prevout={self.prevout!r}, script_sig="{self.script_sig}", '
            f'sequence={self.sequence})')


@attr.s(slots=True, frozen=True, repr=False)
class UnsignedTxInput:
    '''An input still waiting for its signatures, along with the value it spends.'''
    prevout: Outpoint = attr.ib()
    script_sig: UnsignedScriptSig = attr.ib()
    sequence: int = attr.ib(default=DEFAULT_SEQUENCE)
    value: int = attr.ib(default=0)
    token_data: TokenData | None = attr.ib(default=None)

    def is_complete(self) -> bool:
        return False

    def is_coinbase(self) -> bool:
        return False

    def script_pubkey(self, context: DerivationContext) -> Script | None:
        return self.script_sig.script_pubkey(context)

    def to_bytes(self) -> bytes:
        return b''.join((
            self.prevout.to_bytes(),
            pack_varbytes(self.script_sig.script),
            pack_le_uint32(self.sequence),
            pack_input_value(self.value, self.token_data),
        ))

    def to_dict(self, context: DerivationContext | None=None,
            network: NetworkType | None=None) -> dict[str, Any]:
        result: dict[str, Any] = {
            "prev_hash": hash_to_hex_str(self.prevout.tx_hash),
            "prev_idx": self.prevout.txo_index,
            "script_sig": self.script_sig.to_hex(),
            "sequence": self.sequence,
            "kind": "unsigned",
            "value": self.value,
        }
        if self.token_data is not None:
            result["token_data"] = self.token_data.to_dict()
        if context is not None:
            script_pubkey = self.script_pubkey(context)
            result["script_pubkey"] = None if script_pubkey is None else bytes(script_pubkey).hex()
            if script_pubkey is not None and network is not None:
                result["address"] = _address_or_none(script_pubkey, network)
        return result

    def __repr__(self) -> str:
        return (f'UnsignedTxInput(prevout={self.prevout!r}, script_sig={self.script_sig!r}, '
            f'sequence={self.sequence}, value={self.value}, token_data={self.token_data!r})')


TxInput = Union[SignedTxInput, UnsignedTxInput]


def read_tx_input(read: ReadBytesFunc) -> TxInput:
    prevout = Outpoint.read(read)
    script_sig = xread_varbytes(read)
    sequence = read_le_uint32(read)
    if is_unsigned_script_sig(script_sig):
        value, token_data = read_input_value(read)
        return UnsignedTxInput(prevout, UnsignedScriptSig(script_sig), sequence, value,
            token_data)
    return SignedTxInput(prevout, Script(script_sig), sequence)


@attr.s(slots=True, frozen=True, repr=False)
class TxOutput:
    """
    A transaction output. Token data is written inline ahead of the locking script, marked by
    the token prefix byte.
    """
    value: int = attr.ib()
    script_pubkey: Script = attr.ib()
    token_data: TokenData | None = attr.ib(default=None)

    @classmethod
    def read(cls, read: ReadBytesFunc) -> TxOutput:
        value = read_le_uint64(read)
        script_field = xread_varbytes(read)
        if script_field[:1] != bytes([PREFIX_TOKEN]):
            return cls(value, Script(script_field))

        stream = BytesIO(script_field[1:])
        token_data = TokenData.read(stream.read)
        return cls(value, Script(stream.read()), token_data)

    @classmethod
    def from_bytes(cls, raw: bytes) -> TxOutput:
        stream = BytesIO(raw)
        with truncation_errors():
            return cls.read(stream.read)

    def to_bytes(self) -> bytes:
        script_field = bytes(self.script_pubkey)
        if self.token_data is not None:
            script_field = bytes([PREFIX_TOKEN]) + self.token_data.to_bytes() + script_field
        return pack_le_uint64(self.value) + pack_varbytes(script_field)

    def to_dict(self, network: NetworkType | None=None) -> dict[str, Any]:
        result: dict[str, Any] = {
            "value": self.value,
            "script_pubkey": bytes(self.script_pubkey).hex(),
        }
        if network is not None:
            result["address"] = _address_or_none(self.script_pubkey, network)
        if self.token_data is not None:
            result["token_data"] = self.token_data.to_dict()
        return result

    def __repr__(self) -> str:
        return (f'TxOutput(value={self.value}, script_pubkey="{self.script_pubkey}", '
            f'token_data={self.token_data!r})')


def _address_or_none(script: Script, network: NetworkType) -> str | None:
    try:
        return script_to_cash_address(script, network)
    except UnsupportedAddressType:
        return None


@attr.s(slots=True, frozen=True, repr=False)
class PartiallySignedTransaction:
    version: int = attr.ib(default=2)
    inputs: tuple[TxInput, ...] = attr.ib(default=(), converter=tuple)
    outputs: tuple[TxOutput, ...] = attr.ib(default=(), converter=tuple)
    locktime: int = attr.ib(default=0)

    @classmethod
    def read(cls, read: ReadBytesFunc) -> PartiallySignedTransaction:
        with truncation_errors():
            return cls(
                version=read_le_int32(read),
                inputs=read_capped_list(read, read_tx_input, MINIMUM_TX_INPUT_SIZE),
                outputs=read_capped_list(read, TxOutput.read, MINIMUM_TX_OUTPUT_SIZE),
                locktime=read_le_uint32(read),
            )

    @classmethod
    def from_bytes(cls, raw: bytes) -> PartiallySignedTransaction:
        stream = BytesIO(raw)
        tx = cls.read(stream.read)
        if stream.tell() != len(raw):
            raise TransactionDecodeError(
                f"{len(raw) - stream.tell():,d} bytes of trailing data after transaction")
        return tx

    @classmethod
    def from_hex(cls, text: str) -> PartiallySignedTransaction:
        try:
            raw = bytes.fromhex(text.strip())
        except ValueError as e:
            raise TransactionDecodeError(f"invalid hex: {e}") from e
        return cls.from_bytes(raw)

    def to_bytes(self) -> bytes:
        return b''.join((
            pack_le_int32(self.version),
            pack_list(self.inputs, lambda txin: txin.to_bytes()),
            pack_list(self.outputs, TxOutput.to_bytes),
            pack_le_uint32(self.locktime),
        ))

    def to_hex(self) -> str:
        return self.to_bytes().hex()

    def __str__(self) -> str:
        return self.to_hex()

    def is_complete(self) -> bool:
        return all(txin.is_complete() for txin in self.inputs)

    def unsigned_inputs(self) -> list[UnsignedTxInput]:
        return [ txin for txin in self.inputs if isinstance(txin, UnsignedTxInput) ]

    def hash(self) -> bytes:
        return double_sha256(self.to_bytes())

    def txid(self) -> str | None:
        '''A hexadecimal string if complete, otherwise None.'''
        if self.is_complete():
            return hash_to_hex_str(self.hash())
        return None

    def serialized_size(self) -> int:
        return len(self.to_bytes())

    def output_value(self) -> int:
        return sum(output.value for output in self.outputs)

    def to_dict(self, context: DerivationContext | None=None,
            network: NetworkType | None=None) -> dict[str, Any]:
        inputs: list[dict[str, Any]] = []
        for txin in self.inputs:
            if isinstance(txin, UnsignedTxInput):
                inputs.append(txin.to_dict(context, network))
            else:
                inputs.append(txin.to_dict())
        return {
            "version": self.version,
            "locktime": self.locktime,
            "complete": self.is_complete(),
            "txid": self.txid(),
            "size": self.serialized_size(),
            "output_value": self.output_value(),
            "inputs": inputs,
            "outputs": [ output.to_dict(network) for output in self.outputs ],
        }

    def __repr__(self) -> str:
        return (f'PartiallySignedTransaction(version={self.version}, inputs={list(self.inputs)}, '
            f'outputs={list(self.outputs)}, locktime={self.locktime})')


def outpoint_from_hex(tx_id: str, txo_index: int) -> Outpoint:
    return Outpoint(hex_str_to_hash(tx_id), txo_index)
