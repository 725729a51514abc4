"""
pda_search - Search for program-derived addresses whose Base58 form matches a pattern
"""

from .constraints import Constraints, MatchResult, match_address
from .derive import create_program_address, find_program_address
from .difficulty import DifficultyEstimate, Tier, estimate_difficulty
from .enumerator import Combination, SeedCursor
from .errors import (
    DerivationError,
    InvalidPDA,
    NoValidBumpFound,
    PDASearchError,
    SeedTooLong,
    ValidationError,
)
from .parallel import ParallelSearch, search_parallel
from .search import (
    PDABruteForcer,
    SearchOptions,
    SearchProgress,
    SearchResult,
    SearchSession,
    SearchState,
)
from .seeds import Literal, Range, encode_value

__version__ = "0.1.0"
