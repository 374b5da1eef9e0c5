"""Static rule tables and default candidate pools.

Everything here is pure data. A rule table is the ordered list of step
kinds played during one draft; the arena family additionally pins every
step to a seat (the priority team or its opponent).
"""

from dataclasses import dataclass
from enum import Enum


class GameFamily(Enum):
    """Game families with distinct draft mechanics."""

    FPS = "fps"  # Single layer: maps only
    ARENA = "arena"  # Two layers: a mode, then maps valid for that mode


class GameTitle(Enum):
    """Supported game titles."""

    CS2 = "cs2"
    VALORANT = "valorant"
    SPLATOON = "splatoon"

    @property
    def family(self) -> GameFamily:
        """Get the draft family this title belongs to."""
        if self == GameTitle.SPLATOON:
            return GameFamily.ARENA
        return GameFamily.FPS


class DraftFormat(Enum):
    """Match formats (best-of-N)."""

    BO1 = "bo1"
    BO2 = "bo2"
    BO3 = "bo3"
    BO5 = "bo5"

    @property
    def is_multi_game(self) -> bool:
        """Formats where the opponent of the picking team chooses the side."""
        return self != DraftFormat.BO1


class StepKind(Enum):
    """Kind of action required at a rule table position."""

    BAN = "ban"
    PICK = "pick"
    DECIDER = "decider"
    MODE_BAN = "mode_ban"
    MODE_PICK = "mode_pick"

    @property
    def is_mode_step(self) -> bool:
        return self in (StepKind.MODE_BAN, StepKind.MODE_PICK)


class Seat(Enum):
    """Which team acts at an arena step."""

    PRIORITY = "priority"  # Coin flip winner in round 1, last winner afterwards
    OPPONENT = "opponent"


@dataclass(frozen=True)
class ArenaStep:
    """One position of an arena rule table."""

    kind: StepKind
    seat: Seat


# Every FPS table has this many positions; smaller pools skip the head
FPS_TABLE_LENGTH = 7

FPS_RULE_TABLES: dict[DraftFormat, tuple[StepKind, ...]] = {
    DraftFormat.BO1: (
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.PICK,
    ),
    DraftFormat.BO2: (
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.PICK,
        StepKind.PICK,
    ),
    DraftFormat.BO3: (
        StepKind.BAN,
        StepKind.BAN,
        StepKind.PICK,
        StepKind.PICK,
        StepKind.BAN,
        StepKind.BAN,
        StepKind.DECIDER,
    ),
    DraftFormat.BO5: (
        StepKind.BAN,
        StepKind.BAN,
        StepKind.PICK,
        StepKind.PICK,
        StepKind.PICK,
        StepKind.PICK,
        StepKind.DECIDER,
    ),
}

# Pool sizes each FPS format accepts
FPS_POOL_SIZES: dict[DraftFormat, tuple[int, ...]] = {
    DraftFormat.BO1: (4, 7),
    DraftFormat.BO2: (4, 7),
    DraftFormat.BO3: (7,),
    DraftFormat.BO5: (7,),
}

# Formats on which a knife-round decider may be configured
KNIFE_DECIDER_FORMATS = frozenset({DraftFormat.BO3, DraftFormat.BO5})

# The arena family only supports a BO3-shaped match
ARENA_FORMATS = frozenset({DraftFormat.BO3})
ARENA_MODES_SIZES = (2, 4)

_P = Seat.PRIORITY
_O = Seat.OPPONENT

# (first_round, modes_size) -> steps
ARENA_STEP_PLANS: dict[tuple[bool, int], tuple[ArenaStep, ...]] = {
    (True, 4): (
        ArenaStep(StepKind.MODE_BAN, _P),
        ArenaStep(StepKind.MODE_BAN, _O),
        ArenaStep(StepKind.MODE_PICK, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.PICK, _P),
    ),
    (False, 4): (
        ArenaStep(StepKind.MODE_BAN, _P),
        ArenaStep(StepKind.MODE_PICK, _O),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.PICK, _O),
    ),
    (True, 2): (
        ArenaStep(StepKind.MODE_PICK, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.PICK, _P),
    ),
    (False, 2): (
        ArenaStep(StepKind.MODE_PICK, _O),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _P),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.BAN, _O),
        ArenaStep(StepKind.PICK, _P),
    ),
}


# Full map catalogues per FPS title
MAP_CATALOGUES: dict[GameTitle, tuple[str, ...]] = {
    GameTitle.CS2: (
        "Ancient",
        "Anubis",
        "Dust 2",
        "Inferno",
        "Mirage",
        "Nuke",
        "Overpass",
        "Train",
        "Vertigo",
    ),
    GameTitle.VALORANT: (
        "Abyss",
        "Ascent",
        "Bind",
        "Breeze",
        "District",
        "Drift",
        "Fracture",
        "Glitch",
        "Haven",
        "Icebox",
        "Kasbah",
        "Lotus",
        "Pearl",
        "Piazza",
        "Split",
        "Sunset",
    ),
}

# Default 7-map competitive pools per FPS title
DEFAULT_MAP_POOLS: dict[GameTitle, tuple[str, ...]] = {
    GameTitle.CS2: ("Dust 2", "Mirage", "Inferno", "Nuke", "Ancient", "Anubis", "Train"),
    GameTitle.VALORANT: ("Ascent", "Bind", "Pearl", "Haven", "Abyss", "Sunset", "Split"),
}

ARENA_MODES: tuple[str, ...] = ("clam", "rainmaker", "tower", "zones")

# Modes in play for each supported modes size
ARENA_MODE_SETS: dict[int, tuple[str, ...]] = {
    2: ("tower", "zones"),
    4: ARENA_MODES,
}

MODE_LABELS: dict[str, str] = {
    "clam": "Clam Blitz",
    "rainmaker": "Rainmaker",
    "tower": "Tower Control",
    "zones": "Splat Zones",
}

ARENA_MODE_MAPS: dict[str, tuple[str, ...]] = {
    "clam": (
        "Inkblot Art Academy",
        "Shipshape Cargo Co.",
        "Robo ROM-en",
        "Museum d'Alfonsino",
        "Brinewater Springs",
        "Scorch Gorge",
        "Hagglefish Market",
        "Lemuria Hub",
    ),
    "rainmaker": (
        "Hagglefish Market",
        "Crableg Capital",
        "Undertow Spillway",
        "MakoMart",
        "Humpback Pump Track",
        "Scorch Gorge",
        "Museum d'Alfonsino",
        "Lemuria Hub",
    ),
    "tower": (
        "Undertow Spillway",
        "Mincemeat Metalworks",
        "Manta Maria",
        "Inkblot Art Academy",
        "Marlin Airport",
        "Lemuria Hub",
        "Shipshape Cargo Co.",
        "Eeltail Alley",
    ),
    "zones": (
        "Robo ROM-en",
        "Humpback Pump Track",
        "MakoMart",
        "Flounder Heights",
        "Mincemeat Metalworks",
        "Um'ami Ruins",
        "Manta Maria",
        "Sturgeon Shipyard",
    ),
}


def arena_step_plan(round_number: int, modes_size: int = 4) -> tuple[ArenaStep, ...]:
    """Get the seat-annotated arena steps for a round.

    Round 1 uses the longer table; later rounds use the shorter one where
    the previous winner bans and the loser picks.
    """
    try:
        return ARENA_STEP_PLANS[(round_number <= 1, modes_size)]
    except KeyError:
        raise ValueError(f"Unsupported arena modes size: {modes_size}") from None


def rule_table(
    title: GameTitle,
    fmt: DraftFormat,
    round_number: int = 1,
    modes_size: int = 4,
) -> tuple[StepKind, ...]:
    """Get the ordered step kinds for a title, format and round.

    Args:
        title: Game title
        fmt: Match format
        round_number: Round index (arena family only, 1-based)
        modes_size: Number of modes in play (arena family only)

    Returns:
        Tuple of step kinds
    """
    if title.family == GameFamily.FPS:
        return FPS_RULE_TABLES[fmt]
    return tuple(step.kind for step in arena_step_plan(round_number, modes_size))
