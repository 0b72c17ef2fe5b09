import random

import pytest

from core.registry import (
    BSC_TESTNET,
    SEPOLIA,
    VALIDATORS,
    destination_for,
    shuffled_validators,
    validator_for,
)


def test_destination_alternates_by_parity():
    assert [destination_for(i) for i in range(4)] == [SEPOLIA, BSC_TESTNET, SEPOLIA, BSC_TESTNET]
    assert SEPOLIA.chain_id == 11155111
    assert BSC_TESTNET.chain_id == 97


def test_validator_table():
    assert [v.name for v in VALIDATORS] == ["Helios-Unity", "Helios-Peer", "Helios-Supra"]


def test_shuffled_validators_is_a_permutation():
    shuffled = shuffled_validators(rng=random.Random(7))
    assert sorted(shuffled, key=lambda v: v.name) == sorted(VALIDATORS, key=lambda v: v.name)


def test_shuffled_validators_does_not_mutate_table():
    original = list(VALIDATORS)
    shuffled_validators(rng=random.Random(1))
    assert VALIDATORS == original


def test_validator_round_robin():
    validators = shuffled_validators(rng=random.Random(3))
    picks = [validator_for(validators, r) for r in range(6)]
    assert picks[:3] == validators
    assert picks[3:] == validators


def test_validator_for_empty_set():
    with pytest.raises(ValueError):
        validator_for([], 0)
