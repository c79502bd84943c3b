"""Chain identifiers and account addresses for Flow networks.

This module provides utilities for:
- Chain identification
- Address parsing and canonical rendering
- Address validity checks against a chain's linear code
- Service address lookup and chain inference
"""

from enum import Enum
from typing import Final, TypeAlias

from flow_deploy_core.exceptions import InvalidAddressForChainError

CodeWord: TypeAlias = int

ADDRESS_LENGTH: Final[int] = 8
SERVICE_KEYWORD: Final[str] = "service"

# Columns of the parity check matrix for the [64, 45] address code
_PARITY_CHECK_COLUMNS: Final[tuple[int, ...]] = (
    0x00001, 0x00002, 0x00004, 0x00008, 0x00010, 0x00020, 0x00040, 0x00080,
    0x00100, 0x00200, 0x00400, 0x00800, 0x01000, 0x02000, 0x04000, 0x08000,
    0x10000, 0x20000, 0x40000, 0x7328D, 0x6689A, 0x6112F, 0x6084B, 0x433FD,
    0x42AAB, 0x41951, 0x233CE, 0x22A81, 0x21948, 0x1EF60, 0x1DECA, 0x1C639,
    0x1BDD8, 0x1A535, 0x194AC, 0x18C46, 0x1632B, 0x1529B, 0x14A43, 0x13184,
    0x12942, 0x118C1, 0x0F812, 0x0E027, 0x0D00E, 0x0C83C, 0x0B01D, 0x0A831,
    0x0982B, 0x07034, 0x0682A, 0x05819, 0x03807, 0x007D2, 0x00727, 0x0068E,
    0x0067C, 0x0059D, 0x004EB, 0x003B4, 0x0036A, 0x002D9, 0x001C7, 0x0003F,
)  # fmt: skip

# Address of index 1 on mainnet, the first row of the generator matrix
_MAINNET_SERVICE_WORD: Final[CodeWord] = 0xE467B9DD11FA00DF


class ChainID(str, Enum):
    """Supported Flow chains."""

    MAINNET = "mainnet"
    TESTNET = "testnet"
    EMULATOR = "flow-emulator"

    @classmethod
    def parse(cls, value: "str | ChainID") -> "ChainID":
        """Parse a chain id, accepting the long on-chain names as well."""
        if isinstance(value, ChainID):
            return value
        normalized = value.strip().lower()
        aliases = {
            "flow-mainnet": cls.MAINNET,
            "flow-testnet": cls.TESTNET,
            "emulator": cls.EMULATOR,
        }
        if normalized in aliases:
            return aliases[normalized]
        try:
            return cls(normalized)
        except ValueError as e:
            raise InvalidAddressForChainError(f"unknown chain id: {value}") from e


CHAIN_CODE_WORDS: dict[ChainID, CodeWord] = {
    ChainID.MAINNET: 0,
    ChainID.TESTNET: 0x6834BA37B3980209,
    ChainID.EMULATOR: 0x1CB159857AF02018,
}

# Networks conventionally bound to a chain when a config omits it
NETWORK_CHAINS: dict[str, ChainID] = {
    "emulator": ChainID.EMULATOR,
    "testnet": ChainID.TESTNET,
    "mainnet": ChainID.MAINNET,
}


class Address:
    """Flow account address: eight bytes rendered as lowercase hex."""

    __slots__ = ("_value",)

    def __init__(self, value: bytes) -> None:
        if len(value) != ADDRESS_LENGTH:
            raise ValueError(
                f"address must be {ADDRESS_LENGTH} bytes, got {len(value)}"
            )
        self._value = bytes(value)

    @classmethod
    def from_hex(cls, value: str) -> "Address":
        """Parse hex with or without the 0x prefix, left padding short input."""
        text = value.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        if not text or len(text) > ADDRESS_LENGTH * 2:
            raise ValueError(f"could not parse address: {value}")
        try:
            return cls(bytes.fromhex(text.rjust(ADDRESS_LENGTH * 2, "0")))
        except ValueError as e:
            raise ValueError(f"could not parse address: {value}") from e

    @classmethod
    def from_int(cls, value: int) -> "Address":
        return cls(value.to_bytes(ADDRESS_LENGTH, "big"))

    @property
    def raw(self) -> bytes:
        return self._value

    def to_int(self) -> int:
        return int.from_bytes(self._value, "big")

    def hex(self) -> str:
        return self._value.hex()

    def hex_with_prefix(self) -> str:
        return "0x" + self._value.hex()

    def is_valid_on(self, chain_id: ChainID | str) -> bool:
        """Check the address is a codeword of the chain's address code."""
        code_word = self.to_int() ^ CHAIN_CODE_WORDS[ChainID.parse(chain_id)]
        if code_word == 0:
            return False

        parity = 0
        for column in _PARITY_CHECK_COLUMNS:
            if code_word & 1:
                parity ^= column
            code_word >>= 1
        return parity == 0

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Address({self.hex()!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Address):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


def service_address(chain_id: ChainID | str) -> Address:
    """Get the service account address of a chain."""
    chain = ChainID.parse(chain_id)
    return Address.from_int(_MAINNET_SERVICE_WORD ^ CHAIN_CODE_WORDS[chain])


def parse_address(value: str, chain_id: ChainID | str | None = None) -> Address:
    """Parse a configuration address, resolving the "service" keyword.

    Args:
        value: Hex address or the literal "service"
        chain_id: Chain used to resolve "service", defaults to the emulator

    Returns:
        Parsed address

    Raises:
        ValueError: If the value is not a valid hex address
    """
    if value.strip().lower() == SERVICE_KEYWORD:
        return service_address(chain_id or ChainID.EMULATOR)
    return Address.from_hex(value)


def infer_chain(address: Address) -> ChainID:
    """Guess the chain an address belongs to.

    Service addresses are matched first, then the address code of each chain
    is checked. Addresses matching no chain are treated as emulator accounts.
    """
    for chain in (ChainID.EMULATOR, ChainID.TESTNET, ChainID.MAINNET):
        if address == service_address(chain):
            return chain
    for chain in (ChainID.EMULATOR, ChainID.TESTNET, ChainID.MAINNET):
        if address.is_valid_on(chain):
            return chain
    return ChainID.EMULATOR


def chain_for_network(network_name: str) -> ChainID:
    """Get the chain conventionally used by a network name."""
    return NETWORK_CHAINS.get(network_name, ChainID.EMULATOR)


def ensure_valid_on(address: Address, chain_id: ChainID | str) -> Address:
    """Raise if the address does not belong to the chain."""
    if not address.is_valid_on(chain_id):
        raise InvalidAddressForChainError(
            f"address {address} is not valid on chain {ChainID.parse(chain_id).value}"
        )
    return address
