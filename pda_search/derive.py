"""
derive.py - Program-derived address derivation

Each bump from 255 down to 0 is appended to the seeds and handed to
Pubkey.create_program_address; the first one whose address lies off the
Ed25519 curve wins.
"""

from solders.pubkey import Pubkey

from .errors import InvalidPDA, NoValidBumpFound, SeedTooLong

MAX_SEED_LEN = 32
MAX_SEEDS = 16


def _as_pubkey(program_id):
    if isinstance(program_id, Pubkey):
        return program_id
    return Pubkey.from_bytes(bytes(program_id))


def _check_seeds(seeds, limit):
    if len(seeds) > limit:
        raise SeedTooLong(f"{len(seeds)} seeds given, at most {limit} allowed")
    for i, seed in enumerate(seeds):
        if len(seed) > MAX_SEED_LEN:
            raise SeedTooLong(f"Seed {i} is {len(seed)} bytes, at most {MAX_SEED_LEN} allowed")


def create_program_address(seeds, program_id):
    """Address for seeds (bump included) under program_id; fail if it is on-curve"""
    seeds = [bytes(seed) for seed in seeds]
    _check_seeds(seeds, MAX_SEEDS)
    try:
        pda = Pubkey.create_program_address(seeds, _as_pubkey(program_id))
    except Exception as e:
        # Seed limits are checked above, so the only failure left is an on-curve hash
        raise InvalidPDA(f"Derived address lies on the Ed25519 curve: {e}") from e
    return bytes(pda)


def find_program_address(seeds, program_id):
    """Return (address, bump) for the highest bump that gives an off-curve address"""
    seeds = [bytes(seed) for seed in seeds]
    _check_seeds(seeds, MAX_SEEDS - 1)
    program_id = _as_pubkey(program_id)

    bump = 0xFF
    while True:
        try:
            return create_program_address(seeds + [bytes([bump])], program_id), bump
        except InvalidPDA:
            pass
        if bump == 0:
            break
        bump -= 1
    raise NoValidBumpFound("Unable to find a viable program address bump")
