import hashlib
import secrets

import pytest
from nacl.signing import SigningKey
from solders.pubkey import Pubkey

from pda_search import derive
from pda_search.derive import create_program_address, find_program_address
from pda_search.errors import InvalidPDA, NoValidBumpFound, SeedTooLong

SEED_SETS = [
    [b"test"],
    [b""],
    [b"vault", b"\x07"],
    [b"user", bytes(range(32))],
    [b"a" * 32, b"b" * 32, b"\x00\x01"],
]


def sha256_address(seeds, program_id):
    """Hash layout the chain uses for a program-derived address"""
    hasher = hashlib.sha256()
    for seed in seeds:
        hasher.update(seed)
    hasher.update(program_id)
    hasher.update(b"ProgramDerivedAddress")
    return hasher.digest()


@pytest.mark.parametrize("seeds", SEED_SETS)
def test_deterministic(seeds, program_id_bytes):
    first = find_program_address(seeds, program_id_bytes)
    second = find_program_address(seeds, program_id_bytes)
    assert first == second
    address, bump = first
    assert len(address) == 32
    assert 0 <= bump <= 255
    assert not Pubkey(address).is_on_curve()


@pytest.mark.parametrize("seeds", SEED_SETS)
def test_address_is_the_seed_hash_with_bump(seeds, program_id_bytes):
    address, bump = find_program_address(seeds, program_id_bytes)
    assert address == sha256_address(seeds + [bytes([bump])], program_id_bytes)


def test_accepts_pubkey_program_id(program_id_bytes):
    assert find_program_address([b"x"], Pubkey(program_id_bytes)) == \
        find_program_address([b"x"], program_id_bytes)


def test_create_with_found_bump_round_trips(program_id_bytes):
    address, bump = find_program_address([b"round", b"trip"], program_id_bytes)
    assert create_program_address([b"round", b"trip", bytes([bump])], program_id_bytes) == address


def test_higher_bumps_were_on_curve(program_id_bytes):
    seeds = [b"bump"]
    _, bump = find_program_address(seeds, program_id_bytes)
    for higher in range(bump + 1, 256):
        with pytest.raises(InvalidPDA):
            create_program_address(seeds + [bytes([higher])], program_id_bytes)


def test_signing_keys_are_on_curve_and_derived_addresses_are_not(program_id_bytes):
    for i in range(20):
        verify_key = SigningKey(secrets.token_bytes(32)).verify_key
        assert Pubkey(verify_key.encode()).is_on_curve()
        address, _ = find_program_address([i.to_bytes(2, "little")], program_id_bytes)
        assert not Pubkey(address).is_on_curve()


def test_seed_too_long(program_id_bytes):
    with pytest.raises(SeedTooLong):
        find_program_address([b"x" * 33], program_id_bytes)
    with pytest.raises(SeedTooLong):
        find_program_address([b"x"] * 16, program_id_bytes)
    with pytest.raises(SeedTooLong):
        create_program_address([b"x"] * 17, program_id_bytes)


def test_no_valid_bump(monkeypatch, program_id_bytes):
    def always_on_curve(seeds, program_id):
        raise InvalidPDA("on curve")

    monkeypatch.setattr(derive, "create_program_address", always_on_curve)
    with pytest.raises(NoValidBumpFound):
        find_program_address([b"test"], program_id_bytes)
