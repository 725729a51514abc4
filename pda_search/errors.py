"""
errors.py - Exceptions raised by the PDA search engine
"""


class PDASearchError(Exception):
    """Base class for every error raised by pda_search"""


class ValidationError(PDASearchError, ValueError):
    """Search options were rejected before any work started"""


class DerivationError(PDASearchError):
    """A single seed combination could not be turned into an address"""


class SeedTooLong(DerivationError):
    """A seed is longer than the chain allows, or too many seeds were given"""


class InvalidPDA(DerivationError):
    """The hash for one bump landed on the Ed25519 curve"""


class NoValidBumpFound(DerivationError):
    """No bump in 255..0 produced an off-curve address"""
