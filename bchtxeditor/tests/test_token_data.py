import pytest

from bchtxeditor.constants import MAX_TOKEN_AMOUNT, NFTCapability
from bchtxeditor.exceptions import InvalidTokenData, MalformedTokenPayload, TruncatedInput
from bchtxeditor.token_data import TokenData


CATEGORY_ID = bytes(range(32))
# The category id is displayed in reverse byte order, like a transaction id.
CATEGORY_ID_HEX = bytes(reversed(CATEGORY_ID)).hex()


class TestTokenDataConstruction:
    def test_from_fields_fungible(self) -> None:
        token_data = TokenData.from_fields(CATEGORY_ID_HEX, ft_amount=100)
        assert token_data.category_id == CATEGORY_ID
        assert token_data.category_id_hex() == CATEGORY_ID_HEX
        assert token_data.amount == 100
        assert not token_data.has_nft
        assert token_data.capability == NFTCapability.NONE
        assert token_data.commitment == b''

    def test_from_fields_nft(self) -> None:
        token_data = TokenData.from_fields(CATEGORY_ID_HEX, nft_capability=NFTCapability.MINTING,
            nft_commitment_hex="cafe")
        assert token_data.has_nft
        assert token_data.amount == 0
        assert token_data.capability == NFTCapability.MINTING
        assert token_data.commitment == b'\xca\xfe'

    def test_from_fields_zero_amount_rejected(self) -> None:
        with pytest.raises(InvalidTokenData):
            TokenData.from_fields(CATEGORY_ID_HEX, ft_amount=0)

    def test_from_fields_commitment_without_nft(self) -> None:
        with pytest.raises(InvalidTokenData):
            TokenData.from_fields(CATEGORY_ID_HEX, ft_amount=1, nft_commitment_hex="00")

    def test_from_fields_bad_hex(self) -> None:
        with pytest.raises(InvalidTokenData):
            TokenData.from_fields("zz" * 32, ft_amount=1)

    @pytest.mark.parametrize("kwargs", (
        { "amount": 1, "capability": NFTCapability.MUTABLE },
        { "amount": 1, "commitment": b'\x01' },
        { "amount": 0 },
        { "amount": -1, "has_nft": True },
        { "amount": MAX_TOKEN_AMOUNT + 1, "has_nft": True },
    ))
    def test_impossible_states_rejected(self, kwargs) -> None:
        with pytest.raises(InvalidTokenData):
            TokenData(CATEGORY_ID, **kwargs)

    def test_category_id_length(self) -> None:
        with pytest.raises(InvalidTokenData):
            TokenData(CATEGORY_ID[:31], amount=1)

    def test_invalid_token_data_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            TokenData(CATEGORY_ID)


class TestTokenDataBitfield:
    @pytest.mark.parametrize("kwargs,bitfield", (
        ({ "amount": 1 }, 0x10),
        ({ "has_nft": True }, 0x20),
        ({ "has_nft": True, "capability": NFTCapability.MUTABLE }, 0x21),
        ({ "has_nft": True, "capability": NFTCapability.MINTING }, 0x22),
        ({ "has_nft": True, "commitment": b'\x01' }, 0x60),
        ({ "amount": 5, "has_nft": True, "capability": NFTCapability.MUTABLE,
            "commitment": b'a' }, 0x71),
    ))
    def test_bitfield_follows_fields(self, kwargs, bitfield: int) -> None:
        token_data = TokenData(CATEGORY_ID, **kwargs)
        assert token_data.bitfield == bitfield
        assert token_data.to_bytes()[32] == bitfield

    def test_fungible_only_serialisation(self) -> None:
        token_data = TokenData(CATEGORY_ID, amount=100)
        assert token_data.to_bytes() == CATEGORY_ID + bytes.fromhex("1064")

    def test_full_serialisation(self) -> None:
        token_data = TokenData(CATEGORY_ID, amount=1000, has_nft=True,
            capability=NFTCapability.MINTING, commitment=b'\x01\x02')
        assert token_data.to_bytes() == CATEGORY_ID + bytes.fromhex("72020102fde803")
        assert TokenData.from_bytes(token_data.to_bytes()) == token_data

    def test_max_amount(self) -> None:
        token_data = TokenData(CATEGORY_ID, amount=MAX_TOKEN_AMOUNT)
        assert TokenData.from_bytes(token_data.to_bytes()).amount == MAX_TOKEN_AMOUNT


class TestTokenDataDecoding:
    @pytest.mark.parametrize("tail_hex", (
        # Reserved bit.
        "9001",
        # Unknown capability.
        "23",
        "2f",
        # Capability without an NFT.
        "1101",
        # Commitment without an NFT.
        "500101",
        # Neither an NFT nor an amount.
        "00",
        # Zero length commitment.
        "6000",
        # Zero amount.
        "1000",
        # Amount above the maximum.
        "10ffffffffffffffffff",
    ))
    def test_malformed(self, tail_hex: str) -> None:
        with pytest.raises(MalformedTokenPayload):
            TokenData.from_bytes(CATEGORY_ID + bytes.fromhex(tail_hex))

    @pytest.mark.parametrize("raw", (
        CATEGORY_ID[:10],
        CATEGORY_ID,
        CATEGORY_ID + bytes.fromhex("10"),
        CATEGORY_ID + bytes.fromhex("6005aabb"),
    ))
    def test_truncated(self, raw: bytes) -> None:
        with pytest.raises(TruncatedInput):
            TokenData.from_bytes(raw)

    def test_trailing_data(self) -> None:
        with pytest.raises(MalformedTokenPayload):
            TokenData.from_bytes(CATEGORY_ID + bytes.fromhex("106400"))

    def test_immutable_nft(self) -> None:
        token_data = TokenData.from_bytes(CATEGORY_ID + bytes.fromhex("20"))
        assert token_data.has_nft
        assert token_data.capability == NFTCapability.NONE
        assert token_data.amount == 0


def test_to_dict() -> None:
    token_data = TokenData(CATEGORY_ID, amount=7, has_nft=True,
        capability=NFTCapability.MUTABLE, commitment=b'\xab')
    assert token_data.to_dict() == {
        "category": CATEGORY_ID_HEX,
        "amount": 7,
        "nft": { "capability": "mutable", "commitment": "ab" },
    }
