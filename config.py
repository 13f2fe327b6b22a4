# config.py
import os

# ======= Engine selection =======
ENGINE = os.getenv("RP_ENGINE", "exhaustive").strip().lower() or "exhaustive"

# ======= Exhaustive search budgets =======
# Zero disables the budget.  The exact search is exponential, so long runs on
# larger rolls should set at least one of these.
NODE_LIMIT = int(os.getenv("RP_NODE_LIMIT", "0"))
TIME_LIMIT = float(os.getenv("RP_TIME_LIMIT", "0"))

# First-fit per (item, orientation) is the default branching rule.  Setting
# this enumerates every feasible top-left cell instead (much slower).
EXHAUSTIVE_ALL_POSITIONS = int(os.getenv("RP_EXHAUSTIVE_ALL_POSITIONS", "0")) != 0

# Assert grid/demand undo symmetry around every branch (test builds).
CHECK_INVARIANTS = int(os.getenv("RP_CHECK_INVARIANTS", "0")) != 0

# Extra frames allowed on top of the recursion depth of the exact search.
RECURSION_MARGIN = int(os.getenv("RP_RECURSION_MARGIN", "200"))

# ======= Simulated annealing =======
SA_T0             = float(os.getenv("RP_SA_T0", "1000"))
SA_ALPHA          = float(os.getenv("RP_SA_ALPHA", "0.99"))
SA_MAX_ITERATIONS = int(os.getenv("RP_SA_MAX_ITERATIONS", "50000"))

_seed_env = os.getenv("RP_RANDOM_SEED", "").strip()
RANDOM_SEED = int(_seed_env) if _seed_env else None

# ======= CP-SAT reference model =======
CPSAT_TIME_LIMIT = float(os.getenv("RP_CPSAT_TIME_LIMIT", "30"))
WORKERS          = int(os.getenv("RP_WORKERS", "1"))
MAX_MEMORY_MB    = int(os.getenv("RP_MAX_MEMORY_MB", "2048"))

# ======= Output names =======
SOLUTION_OUT = os.getenv("RP_SOLUTION_OUT", "solution.txt")
LAYOUT_HTML  = os.getenv("RP_LAYOUT_HTML", "layout_view.html")

# ======= Rendering =======
CELL_PX = int(os.getenv("RP_CELL_PX", "24"))

ENGINES = ("exhaustive", "greedy", "annealing", "cpsat")

class CFG:
    ENGINE = ENGINE
    ENGINES = ENGINES

    NODE_LIMIT = NODE_LIMIT
    TIME_LIMIT = TIME_LIMIT
    EXHAUSTIVE_ALL_POSITIONS = EXHAUSTIVE_ALL_POSITIONS
    CHECK_INVARIANTS = CHECK_INVARIANTS
    RECURSION_MARGIN = RECURSION_MARGIN

    SA_T0             = SA_T0
    SA_ALPHA          = SA_ALPHA
    SA_MAX_ITERATIONS = SA_MAX_ITERATIONS
    RANDOM_SEED       = RANDOM_SEED

    CPSAT_TIME_LIMIT = CPSAT_TIME_LIMIT
    WORKERS          = WORKERS
    MAX_MEMORY_MB    = MAX_MEMORY_MB

    SOLUTION_OUT = SOLUTION_OUT
    LAYOUT_HTML  = LAYOUT_HTML

    CELL_PX = CELL_PX

__all__ = ["CFG", "ENGINES"]
