"""
presets.py - Seed layouts that programs commonly use for their accounts
"""

from .seeds import ADDRESS, Literal, Range


def user_account(user):
    return [
        Literal("user", description="Static prefix"),
        Literal(user, ADDRESS, description="User wallet address"),
    ]


def token_account(owner, mint):
    return [
        Literal("token", description="Static prefix"),
        Literal(owner, ADDRESS, description="Owner address"),
        Literal(mint, ADDRESS, description="Mint address"),
    ]


def counter_with_id():
    return [
        Literal("counter", description="Static prefix"),
        Range(0, 1000, 4, description="Counter ID"),
    ]


def game_state(player):
    return [
        Literal("game", description="Static prefix"),
        Literal(player, ADDRESS, description="Player address"),
        Range(1, 100, 1, description="Level"),
    ]


# name -> (builder, names of the addresses it needs)
PRESETS = {
    "user-account": (user_account, ("user",)),
    "token-account": (token_account, ("owner", "mint")),
    "counter": (counter_with_id, ()),
    "game-state": (game_state, ("player",)),
}


def build_preset(name, addresses=()):
    """Return the seed specs of a named preset, filled with the given addresses"""
    try:
        builder, params = PRESETS[name]
    except KeyError:
        raise ValueError(f"Unknown preset {name!r}; choose from {', '.join(PRESETS)}") from None
    if len(addresses) != len(params):
        raise ValueError(
            f"Preset {name!r} needs {len(params)} address(es): {', '.join(params) or 'none'}"
        )
    return builder(*addresses)
