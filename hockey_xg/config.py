# hockey_xg/config.py
from dataclasses import dataclass
from typing import FrozenSet, Tuple


# rink: attacking net center in the fixed frame
NET_X, NET_Y = 89.0, 0.0

SHOT_ON_GOAL = "shot-on-goal"
MISSED_SHOT = "missed-shot"
GOAL = "goal"
SHOT_EVENTS = frozenset({SHOT_ON_GOAL, MISSED_SHOT, GOAL})

OFFENSIVE_ZONE = "O"
SHOOTOUT_PERIOD = 5
PERIOD_LENGTH_SECONDS = 20 * 60

UNKNOWN = "unknown"
GOAL_LABEL = "goal"
ATTEMPT_LABEL = "shot-attempt"

# model-output DSA cutoff (~top 40th percentile of xG)
DSA_THRESHOLD = 0.064

SEED = 42
TEST_SIZE = 0.2
N_FOLDS = 10
RARE_LEVEL_FREQUENCY = 0.05

WANDB_PROJECT = "hockey-xg"


@dataclass(frozen=True)
class ModelingPolicy:
    """Which shots are modeled and how rebounds are detected."""

    name: str
    event_types: FrozenSet[str]
    rebound_max_seconds: float
    rebound_strictly_positive: bool
    penalty_shot_code: str = "ps"
    excluded_periods: Tuple[int, ...] = (SHOOTOUT_PERIOD,)


# missed shots in, rebound window [0, 4)
FENWICK_POLICY = ModelingPolicy(
    name="fenwick",
    event_types=SHOT_EVENTS,
    rebound_max_seconds=4.0,
    rebound_strictly_positive=False,
)

# shots on goal only, rebound window (0, 3)
ON_GOAL_POLICY = ModelingPolicy(
    name="on_goal",
    event_types=frozenset({SHOT_ON_GOAL, GOAL}),
    rebound_max_seconds=3.0,
    rebound_strictly_positive=True,
)

POLICIES = {p.name: p for p in (FENWICK_POLICY, ON_GOAL_POLICY)}
DEFAULT_POLICY = FENWICK_POLICY
