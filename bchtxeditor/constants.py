from enum import IntEnum


## Local functions to avoid circular dependencies. This file should be independent

DerivationPath = tuple[int, ...]


class ScriptKind(IntEnum):
    # These names are used as text identifiers in decoded output. Consider that if you plan on
    # renaming them.
    UNKNOWN = 0
    P2PKH = 1
    P2SH20 = 2
    P2SH32 = 3


# The numeric type tag in the version byte of a cash address payload.
class CashAddressType(IntEnum):
    P2PKH = 0
    P2SH = 1
    TOKEN_P2PKH = 2
    TOKEN_P2SH = 3

P2PKH_ADDRESS_TYPES = (CashAddressType.P2PKH, CashAddressType.TOKEN_P2PKH)
P2SH_ADDRESS_TYPES = (CashAddressType.P2SH, CashAddressType.TOKEN_P2SH)


class NFTCapability(IntEnum):
    # The low nibble of the token bitfield, only meaningful when an NFT is present.
    NONE = 0x00
    MUTABLE = 0x01
    MINTING = 0x02


class TokenStructure(IntEnum):
    HAS_AMOUNT = 0x10
    HAS_NFT = 0x20
    HAS_COMMITMENT_LENGTH = 0x40
    RESERVED = 0x80

TOKEN_CAPABILITY_MASK = 0x0f

# The token announcement opcode that prefixes token data in a locking script field.
PREFIX_TOKEN = 0xef

MAX_TOKEN_AMOUNT = 0x7fffffffffffffff


class XPublicKeyPrefix(IntEnum):
    """
    The first byte of the payload in a single key placeholder unlocking script, following the
    Electrum serialisation of extended public keys.
    """
    SCRIPT_PUBKEY = 0xfd
    OLD_MASTER_PUBLIC_KEY = 0xfe
    BIP32 = 0xff
    COMPRESSED_EVEN = 0x02
    COMPRESSED_ODD = 0x03
    UNCOMPRESSED = 0x04

RECOGNISED_XPUBLIC_KEY_PREFIXES = frozenset(XPublicKeyPrefix) - { XPublicKeyPrefix.SCRIPT_PUBKEY }
PUBLIC_KEY_PREFIXES = frozenset({ XPublicKeyPrefix.COMPRESSED_EVEN,
    XPublicKeyPrefix.COMPRESSED_ODD, XPublicKeyPrefix.UNCOMPRESSED })

# The single byte first push that marks a single key placeholder unlocking script.
NO_SIGNATURE = b'\xff'

BIP32_SERIALISED_KEY_LENGTH = 78
# A derivation path step that does not fit in 16 bits is written as this marker followed by
# the full 32 bit index.
DERIVATION_INDEX_ESCAPE = 0xffff
HARDENED_INDEX = 0x80000000

# The value field of an unsigned input is extended when it is at or above this threshold. The
# low nibble is the extension version.
VALUE_EXTENSION_THRESHOLD = 0xfffffffffffffff0
VALUE_EXTENSION_VERSION = 0xf
VALUE_EXTENSION_SENTINEL = VALUE_EXTENSION_THRESHOLD | VALUE_EXTENSION_VERSION

# Upper bound on the memory we are prepared to reserve up front when reading a length prefixed
# vector. Only a quarter of this is ever reserved before the items are actually read.
MAX_VEC_SIZE = 4_000_000

# The smallest possible serialised sizes, used to cap reservations for declared counts.
MINIMUM_TX_INPUT_SIZE = 32 + 4 + 1 + 4
MINIMUM_TX_OUTPUT_SIZE = 8 + 1

DEFAULT_SEQUENCE = 0xfffffffe
