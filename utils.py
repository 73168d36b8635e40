# --- utils.py ---

import time
import threading
from enum import Enum
from colorama import Fore, Style, init

init()

# Default board dimension
N = 4
SUPPORTED_GRID_SIZES = (4, 5, 6)

# Ownership / perspective flags
HUMAN = True     # yellow
COMPUTER = False  # grey

# Positional tile values
CORNER_VALUE = 25.0
EDGE_VALUE = 15.0
TRAP_VALUE = -5.0
INTERIOR_VALUE = 5.0

MAX_ROUNDS = 20


class Pattern(Enum):
    ORTHOGONAL = "orthogonal"
    DIAGONAL = "diagonal"
    MIXED = "mixed"


class LockPolicy(Enum):
    NONE = "none"
    EXCLUSION = "exclusion"
    IMMUNITY = "immunity"


class TieBreak(Enum):
    RANDOM = "random"
    INDEX = "index"


VERBOSE = False
start_time = None

# Lock used for synchronized printing across threads
PRINT_LOCK = threading.Lock()


def side_name(perspective):
    return "Human (Yellow)" if perspective else "CPU (Grey)"


def log_with_time(msg, color=Fore.LIGHTBLUE_EX):
    """Print ``msg`` with a timestamp."""
    global start_time
    if start_time is None:
        start_time = time.time()
    elapsed = time.time() - start_time
    mins = int(elapsed // 60)
    secs = elapsed % 60
    timestamp = Style.DIM + f"[{mins:02}:{secs:06.3f}]" + Style.RESET_ALL
    with PRINT_LOCK:
        print(f"{timestamp} {color}{msg}{Style.RESET_ALL}", flush=True)


def vlog(msg, t0=None):
    if VERBOSE:
        if t0 is not None:
            elapsed = time.time() - t0
            log_with_time(f"{msg} (took {elapsed:.3f}s)")
        else:
            log_with_time(msg)
