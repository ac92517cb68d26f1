"""Global constants for the redrace application."""

DEFAULT_TOURNAMENT_ID = "red2025"
DEFAULT_TOP_CUT_SIZE = 9
DEFAULT_RESTREAM_CHANNEL = "RedRaceTV"

# Firestore allows 500 writes per batch; keep headroom
FIRESTORE_BATCH_LIMIT = 400

# Collection names
USERS_COLLECTION = "users"
RACES_COLLECTION = "races"
GROUPS_COLLECTION = "groups"
TOURNAMENTS_COLLECTION = "tournaments"
PICKEMS_COLLECTION = "pickems"
PAST_RESULTS_COLLECTION = "pastResults"

# User roles
ROLE_RUNNER = "runner"
ROLE_COMMENTATOR = "commentator"
ROLES = (ROLE_RUNNER, ROLE_COMMENTATOR)

# Tiers, lowest first
BRACKET_NORMAL = "Normal"
BRACKET_ASCENSION = "Ascension"
BRACKET_EXHIBITION = "Exhibition"
BRACKET_PLAYOFFS = "Playoffs"
BRACKETS = (BRACKET_NORMAL, BRACKET_ASCENSION, BRACKET_EXHIBITION, BRACKET_PLAYOFFS)

# Tie-break weight a racer earns for the tier it ends a race in
BRACKET_TIEBREAK_WEIGHTS = {
    BRACKET_NORMAL: 0,
    BRACKET_ASCENSION: 1,
    BRACKET_EXHIBITION: 3,
    BRACKET_PLAYOFFS: 3,
}

# Rounds and the transition out of each one
ROUND_1 = "Round 1"
ROUND_2 = "Round 2"
ROUND_3 = "Round 3"
QUARTERFINALS = "Quarterfinals"
SEMIFINALS = "Semifinals"
FINAL = "Final"
COMPLETED = "Completed"
ROUNDS = (ROUND_1, ROUND_2, ROUND_3, QUARTERFINALS, SEMIFINALS, FINAL)
ROUND_TRANSITIONS = {
    ROUND_1: ROUND_2,
    ROUND_2: ROUND_3,
    ROUND_3: QUARTERFINALS,
    QUARTERFINALS: SEMIFINALS,
    SEMIFINALS: FINAL,
    FINAL: COMPLETED,
}
SWISS_ROUNDS = (ROUND_1, ROUND_2, ROUND_3, QUARTERFINALS)
ELIMINATION_ROUNDS = (SEMIFINALS, FINAL)

# Ending this round computes the top cut instead of moving racers between tiers
TOP_CUT_ROUND = QUARTERFINALS

# Result statuses, best first
STATUS_FINISHED = "Finished"
STATUS_DNF = "DNF"
STATUS_DNS = "DNS"
STATUS_DQ = "DQ"
STATUSES = (STATUS_FINISHED, STATUS_DNF, STATUS_DNS, STATUS_DQ)

# Points
WINNER_POINTS = 4
POINTS_PER_CORRECT_PICK = 5
POINTS_PER_TOP_CUT_PICK = 20

# Pickems field holding the picks for each round
ROUND_PICK_FIELDS = {
    ROUND_1: "round1Picks",
    ROUND_2: "round2Picks",
    ROUND_3: "round3Picks",
    QUARTERFINALS: "quarterFinalsPicks",
    SEMIFINALS: "semiFinalsPicks",
    FINAL: "finalPick",
}

MAX_SWISS_COMMENTATORS = 2
DEFAULT_BEST_TIME_MS = 9_000_000
STATS_TOP_TIMES_LIMIT = 10
STATS_COMMENTATORS_LIMIT = 10
