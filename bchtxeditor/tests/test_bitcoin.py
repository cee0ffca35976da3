from bitcoinx import Ops, pack_byte, push_item, Script
import pytest

from bchtxeditor.bitcoin import build_script, cash_address_to_script, classify_script, \
    is_p2pkh, is_p2sh, is_p2sh32, p2pkh_script, p2sh_script, script_hash, \
    script_to_cash_address
from bchtxeditor.constants import CashAddressType, ScriptKind
from bchtxeditor.exceptions import UnsupportedAddressType
from bchtxeditor.networks import BCHChipnet, BCHMainnet, BCHRegtest, BCHScalenet, \
    BCHTestnet3, BCHTestnet4


HASH_20 = bytes.fromhex('76a04053bda0a88bda5177b86a15c3b29f559873')
HASH_32 = bytes(range(32))

P2PKH_ADDRESS = "bitcoincash:qpm2qsznhks23z7629mms6s4cwef74vcwvy22gdx6a"
P2SH_ADDRESS = "bitcoincash:ppm2qsznhks23z7629mms6s4cwef74vcwvn0h829pq"


class TestScriptClassification:
    def test_p2pkh(self) -> None:
        script = p2pkh_script(HASH_20)
        assert bytes(script) == bytes.fromhex('76a914' + HASH_20.hex() + '88ac')
        assert is_p2pkh(script)
        assert classify_script(script) == ScriptKind.P2PKH
        assert script_hash(script) == (ScriptKind.P2PKH, HASH_20)

    def test_p2sh20(self) -> None:
        script = p2sh_script(HASH_20)
        assert bytes(script) == bytes.fromhex('a914' + HASH_20.hex() + '87')
        assert is_p2sh(script)
        assert classify_script(script) == ScriptKind.P2SH20
        assert script_hash(script) == (ScriptKind.P2SH20, HASH_20)

    def test_p2sh32(self) -> None:
        script = pack_byte(Ops.OP_HASH256) + push_item(HASH_32) + pack_byte(Ops.OP_EQUAL)
        assert len(script) == 35
        assert is_p2sh32(script)
        assert bytes(p2sh_script(HASH_32)) == script
        assert classify_script(script) == ScriptKind.P2SH32
        assert script_hash(script) == (ScriptKind.P2SH32, HASH_32)

    @pytest.mark.parametrize("script_hex", (
        "",
        "6a0c17d8d7a62027d4b56b519d00dc26fa24",
        # P2SH32 shape with the wrong hashing opcode.
        "a920" + "00" * 32 + "87",
        # P2SH32 one byte short.
        "aa20" + "00" * 31 + "87",
        "76a914" + "00" * 20 + "88ad",
    ))
    def test_unknown(self, script_hex: str) -> None:
        script = bytes.fromhex(script_hex)
        assert classify_script(script) == ScriptKind.UNKNOWN
        assert not is_p2sh32(script)
        with pytest.raises(UnsupportedAddressType):
            script_hash(script)


class TestBuildScript:
    @pytest.mark.parametrize("address_kind", (CashAddressType.P2PKH,
        CashAddressType.TOKEN_P2PKH))
    def test_p2pkh_kinds(self, address_kind: int) -> None:
        assert classify_script(build_script(address_kind, HASH_20)) == ScriptKind.P2PKH

    @pytest.mark.parametrize("address_kind", (CashAddressType.P2SH, CashAddressType.TOKEN_P2SH))
    def test_p2sh_kinds(self, address_kind: int) -> None:
        assert classify_script(build_script(address_kind, HASH_20)) == ScriptKind.P2SH20
        assert classify_script(build_script(address_kind, HASH_32)) == ScriptKind.P2SH32

    @pytest.mark.parametrize("address_kind,hash_bytes", (
        (4, HASH_20),
        (15, HASH_20),
        (CashAddressType.P2PKH, HASH_32),
        (CashAddressType.TOKEN_P2PKH, bytes(19)),
        (CashAddressType.P2SH, bytes(24)),
    ))
    def test_unsupported(self, address_kind: int, hash_bytes: bytes) -> None:
        with pytest.raises(UnsupportedAddressType):
            build_script(address_kind, hash_bytes)


class TestCashAddress:
    def test_p2pkh_mainnet(self) -> None:
        assert script_to_cash_address(p2pkh_script(HASH_20), BCHMainnet) == P2PKH_ADDRESS
        assert cash_address_to_script(P2PKH_ADDRESS, BCHMainnet) == p2pkh_script(HASH_20)

    def test_p2sh_mainnet(self) -> None:
        assert script_to_cash_address(p2sh_script(HASH_20), BCHMainnet) == P2SH_ADDRESS
        assert cash_address_to_script(P2SH_ADDRESS, BCHMainnet) == p2sh_script(HASH_20)

    def test_prefix_is_optional(self) -> None:
        unprefixed = P2PKH_ADDRESS.split(":")[1]
        assert cash_address_to_script(unprefixed, BCHMainnet) == p2pkh_script(HASH_20)

    def test_upper_case(self) -> None:
        assert cash_address_to_script(P2SH_ADDRESS.upper(), BCHMainnet) == p2sh_script(HASH_20)

    @pytest.mark.parametrize("network,prefix", ((BCHMainnet, "bitcoincash"),
        (BCHTestnet3, "bchtest"), (BCHTestnet4, "bchtest"), (BCHScalenet, "bchtest"),
        (BCHChipnet, "bchtest"), (BCHRegtest, "bchreg")))
    def test_network_prefixes(self, network, prefix: str) -> None:
        address = script_to_cash_address(p2pkh_script(HASH_20), network)
        assert address.startswith(prefix + ":")
        assert cash_address_to_script(address, network) == p2pkh_script(HASH_20)

    def test_p2sh32_round_trip(self, network) -> None:
        script = p2sh_script(HASH_32)
        assert cash_address_to_script(script_to_cash_address(script, network), network) == script

    def test_wrong_network_prefix(self) -> None:
        with pytest.raises(UnsupportedAddressType):
            cash_address_to_script(P2PKH_ADDRESS, BCHTestnet4)

    def test_legacy_address(self) -> None:
        script = cash_address_to_script("1MYXdf4moacvaEKZ57ozerpJ3t9xSeN6LK", BCHMainnet)
        assert bytes(script) == bytes.fromhex(
            "76a914e158fb15c888037fdc40fb9133b4c1c3c688706488ac")

    @pytest.mark.parametrize("text", ("bitcoincash:", "not an address",
        "bitcoincash:qpm2qsznhks23z7629mms6s4cwef74vcwvy22gdx6b"))
    def test_invalid(self, text: str) -> None:
        with pytest.raises(UnsupportedAddressType):
            cash_address_to_script(text, BCHMainnet)

    def test_no_address_form(self) -> None:
        with pytest.raises(UnsupportedAddressType):
            script_to_cash_address(Script(bytes.fromhex("6a0100")), BCHMainnet)
