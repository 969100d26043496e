"""
Istanbul Extra Data
===================

Decoder for the Istanbul-BFT header `extraData` field.

Layout:
    32-byte vanity || RLP([
        added_validators,
        added_validators_public_keys,
        removed_validators,
        seal,
        aggregated_seal,          # [bitmap, signature, round]
        parent_aggregated_seal,   # [bitmap, signature, round]
    ])

Integers are RLP big-endian byte strings (empty for zero).

Version: 0.1.0
"""

from dataclasses import dataclass, field

import rlp
from rlp.exceptions import RLPException

from shared.blockchain.client import AggregatedSeal, MalformedBlockError


EXTRA_VANITY = 32


@dataclass
class IstanbulExtra:
    """Decoded Istanbul header extra data."""

    added_validators: list[str] = field(default_factory=list)
    added_validators_public_keys: list[str] = field(default_factory=list)
    removed_validators: int = 0
    seal: str = "0x"
    aggregated_seal: AggregatedSeal = field(default_factory=AggregatedSeal)
    parent_aggregated_seal: AggregatedSeal = field(default_factory=AggregatedSeal)


def _to_int(value: bytes) -> int:
    return int.from_bytes(value, "big")


def _to_hex(value: bytes) -> str:
    return "0x" + value.hex()


def _parse_seal(item: object) -> AggregatedSeal:
    if not isinstance(item, list) or len(item) != 3:
        raise MalformedBlockError("aggregated seal must be a 3-item list")
    if not all(isinstance(part, bytes) for part in item):
        raise MalformedBlockError("aggregated seal fields must be byte strings")
    bitmap, signature, round_ = item
    return AggregatedSeal(
        bitmap=_to_int(bitmap),
        signature=_to_hex(signature),
        round=_to_int(round_),
    )


def parse_istanbul_extra(extra_data: str | bytes) -> IstanbulExtra:
    """
    Decode a header's extra data.

    Args:
        extra_data: Raw bytes or 0x-prefixed hex string

    Returns:
        IstanbulExtra with both aggregated seals

    Raises:
        MalformedBlockError: If the data is too short or not valid RLP
    """
    if isinstance(extra_data, str):
        try:
            raw = bytes.fromhex(extra_data.removeprefix("0x"))
        except ValueError as e:
            raise MalformedBlockError(f"extra data is not hex: {e}") from e
    else:
        raw = extra_data

    if len(raw) < EXTRA_VANITY:
        raise MalformedBlockError(
            f"extra data is {len(raw)} bytes, shorter than the {EXTRA_VANITY}-byte vanity"
        )

    try:
        items = rlp.decode(raw[EXTRA_VANITY:])
    except RLPException as e:
        raise MalformedBlockError(f"invalid istanbul extra RLP: {e}") from e

    if not isinstance(items, list) or len(items) < 6:
        raise MalformedBlockError("istanbul extra must be a list of at least 6 items")

    added, added_keys, removed, seal, aggregated, parent_aggregated = items[:6]
    if not isinstance(added, list) or not isinstance(added_keys, list):
        raise MalformedBlockError("added validators must be lists")
    if not isinstance(removed, bytes) or not isinstance(seal, bytes):
        raise MalformedBlockError("removed validators and seal must be byte strings")

    return IstanbulExtra(
        added_validators=[_to_hex(a) for a in added],
        added_validators_public_keys=[_to_hex(k) for k in added_keys],
        removed_validators=_to_int(removed),
        seal=_to_hex(seal),
        aggregated_seal=_parse_seal(aggregated),
        parent_aggregated_seal=_parse_seal(parent_aggregated),
    )
