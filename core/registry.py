"""Stake validators, bridge destinations and their assignment rules.

The orchestrator never indexes these tables inline; it goes through
:func:`destination_for` and :func:`validator_for` so the round-robin
rules are defined (and tested) in one place.

Usage::

    from core.registry import destination_for, shuffled_validators, validator_for

    dest = destination_for(repetition)
    validators = shuffled_validators()
    target = validator_for(validators, repetition)
"""

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class Validator:
    """Stake target."""

    name: str
    address: str


@dataclass(frozen=True)
class Destination:
    """Bridge destination network."""

    name: str
    chain_id: int


VALIDATORS: List[Validator] = [
    Validator("Helios-Unity", "0x7e62c5e7Eba41fC8c25e605749C476C0236e0604"),
    Validator("Helios-Peer", "0x72a9B3509B19D9Dbc2E0Df71c4A6451e8a3DD705"),
    Validator("Helios-Supra", "0xa75a393FF3D17eA7D9c9105d5459769EA3EAEf8D"),
]

SEPOLIA = Destination("Sepolia", 11155111)
BSC_TESTNET = Destination("BSC Testnet", 97)

# Even repetitions go to Sepolia, odd ones to BSC testnet
DESTINATIONS: List[Destination] = [SEPOLIA, BSC_TESTNET]


def destination_for(repetition: int) -> Destination:
    """Alternate destinations by repetition parity."""
    return DESTINATIONS[repetition % len(DESTINATIONS)]


def shuffled_validators(
    validators: Optional[Sequence[Validator]] = None,
    rng: Optional[random.Random] = None,
) -> List[Validator]:
    """Return a shuffled copy of the validator set (one per account pass)."""
    working = list(VALIDATORS if validators is None else validators)
    (rng or random).shuffle(working)
    return working


def validator_for(validators: Sequence[Validator], repetition: int) -> Validator:
    """Round-robin pick from an already shuffled validator list."""
    if not validators:
        raise ValueError("validator set is empty")
    return validators[repetition % len(validators)]
