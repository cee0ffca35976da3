# Pytest looks here for fixtures
from typing import Any

from bitcoinx import hash160
import pytest

from bchtxeditor.derivation import BitcoinxDerivationContext
from bchtxeditor.networks import BCHMainnet, BCHRegtest, BCHTestnet4
from bchtxeditor.simple_config import SimpleConfig


class FailingDerivationContext:
    """ Refuses every key, to check that failures surface as an unrecoverable script. """
    def decode_extended_public_key(self, raw: bytes) -> Any:
        raise ValueError("no keys here")

    def derive_child(self, key: Any, index: int) -> Any:
        raise ValueError("no keys here")

    def public_key_bytes(self, key: Any) -> bytes:
        raise ValueError("no keys here")

    def public_key_hash(self, key: Any) -> bytes:
        raise ValueError("no keys here")


class RecordingDerivationContext:
    """ Treats the extended key as an opaque seed, and records each derivation step. """
    def __init__(self) -> None:
        self.steps: list[int] = []

    def decode_extended_public_key(self, raw: bytes) -> Any:
        return raw

    def derive_child(self, key: Any, index: int) -> Any:
        self.steps.append(index)
        return hash160(key + index.to_bytes(4, "little"))

    def public_key_bytes(self, key: Any) -> bytes:
        return b'\x02' + bytes(key) + bytes(12)

    def public_key_hash(self, key: Any) -> bytes:
        return hash160(self.public_key_bytes(key))


@pytest.fixture
def context():
    return BitcoinxDerivationContext()


@pytest.fixture
def failing_context():
    return FailingDerivationContext()


@pytest.fixture
def recording_context():
    return RecordingDerivationContext()


@pytest.fixture(params=(BCHMainnet, BCHTestnet4, BCHRegtest))
def network(request):
    return request.param


@pytest.fixture
def tmp_config(tmp_path):
    return SimpleConfig({ "bch_tx_editor_path": str(tmp_path) },
        read_user_dir_function=lambda: str(tmp_path))
