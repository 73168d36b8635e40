import hashlib
import threading
import utils


from collections import OrderedDict

# Decisions may run on a worker thread while the session thread asks for hints
_CACHE_LOCK = threading.Lock()

_seen_hashes = {}
_actual_hits = 0
_actual_misses = 0
CACHE_DISABLED = False

# LRU cache using OrderedDict
MAX_CACHE_SIZE = 50000
class LRUCache(OrderedDict):
    def __init__(self, maxsize=MAX_CACHE_SIZE, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.maxsize = maxsize
    def __getitem__(self, key):
        value = super().__getitem__(key)
        self.move_to_end(key)
        return value
    def __setitem__(self, key, value):
        if key in self:
            self.move_to_end(key)
        super().__setitem__(key, value)
        if len(self) > self.maxsize:
            oldest = next(iter(self))
            del self[oldest]


def board_hash(owners_tuple, locked_tuple):
    bits = "".join("Y" if owner else "G" for owner in owners_tuple)
    s = bits + "|" + ",".join(str(t) for t in locked_tuple)
    return hashlib.md5(s.encode()).hexdigest()[:8]


def _get_cache():
    cache = getattr(cached_evaluation, "_cache", None)
    if cache is None:
        cache = LRUCache(MAX_CACHE_SIZE)
        cached_evaluation._cache = cache
    return cache


def cached_evaluation(evaluator, owners_tuple, locked_tuple, perspective, cache=None):
    """Compute or retrieve a cached evaluation.

    The key carries the evaluator signature so boards scored under different
    weights or lock policies never share an entry. When CACHE_DISABLED is
    True, always recomputes without touching cache counters.
    """
    global _actual_hits, _actual_misses

    if CACHE_DISABLED:
        return evaluator.compute(owners_tuple, locked_tuple, perspective)

    # Verbose hash tracking for diagnostics
    if utils.VERBOSE:
        h = board_hash(owners_tuple, locked_tuple)
        count = _seen_hashes.get(h, 0)
        _seen_hashes[h] = count + 1

    if cache is None:
        cache = _get_cache()

    key = (evaluator.signature, owners_tuple, locked_tuple, perspective)
    with _CACHE_LOCK:
        if key in cache:
            _actual_hits += 1
            return cache[key]

    val = evaluator.compute(owners_tuple, locked_tuple, perspective)
    with _CACHE_LOCK:
        _actual_misses += 1
        cache[key] = val
    return val


def clear_cache():
    global _actual_hits, _actual_misses
    with _CACHE_LOCK:
        _get_cache().clear()
        _seen_hashes.clear()
        _actual_hits = 0
        _actual_misses = 0


def cache_stats():
    return {"hits": _actual_hits, "misses": _actual_misses, "size": len(_get_cache())}


def print_cache_summary():
    print(f"[CACHE SUMMARY] Unique board+lock hashes: {len(_seen_hashes)}")
    repeated = [h for h, c in _seen_hashes.items() if c > 1]
    print(f"[CACHE SUMMARY] Hashes seen more than once: {len(repeated)}")
    if repeated:
        print(f"[CACHE SUMMARY] Example repeated hash: {repeated[0]}")
    print(f"[CACHE SUMMARY] Actual cache hits: {_actual_hits}")
    print(f"[CACHE SUMMARY] Actual cache misses: {_actual_misses}")
