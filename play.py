import argparse
import concurrent.futures
import random
import time

from colorama import Fore, Style
import score_cache
import utils
from utils import HUMAN, COMPUTER, SUPPORTED_GRID_SIZES, LockPolicy, Pattern, TieBreak, log_with_time, vlog, side_name
from board import InvalidTileIndex, print_board
from config import DIFFICULTY_PRESETS, config_for
from search import NO_MOVE, format_ranking
from session import GameSession

PROMPT = "Tile (index or r,c), h=hint, n=new game, q=quit > "


def parse_tile(text, grid_size):
    """Turn ``"7"`` or ``"1,3"`` into a tile index."""
    text = text.strip()
    if "," in text:
        r, c = (int(part) for part in text.split(",", 1))
        if not (0 <= r < grid_size and 0 <= c < grid_size):
            raise InvalidTileIndex(f"({r},{c}) is off the {grid_size}x{grid_size} board")
        return r * grid_size + c
    if not text.lstrip("-").isdigit():
        raise ValueError(f"not a tile: {text!r}")
    return int(text)


def build_config(args):
    return config_for(
        args.difficulty,
        grid_size=args.grid_size,
        pattern=Pattern(args.pattern) if args.pattern else None,
        lock_policy=LockPolicy(args.lock_policy) if args.lock_policy else None,
        lock_capacity=args.lock_capacity,
        blunder_probability=args.blunder,
        lookahead_plies=args.lookahead,
        trap_detection=True if args.trap_detection else None,
        tie_break=TieBreak(args.tie_break) if args.tie_break else None,
        max_rounds=args.max_rounds,
    )


def print_status(session, hint=None):
    scores = session.scores()
    print(
        f"{Fore.YELLOW}Yellow (You): {scores['yellow']}{Style.RESET_ALL} | "
        f"{Fore.WHITE}Grey (CPU): {scores['grey']}{Style.RESET_ALL} | "
        f"Round {min(session.round_number, session.config.max_rounds)}/{session.config.max_rounds} | "
        f"Eval {scores['human_eval']:+.1f}",
        flush=True,
    )
    print_board(session.state, session.config.grid_size, session.locks, hint=hint, last_move=session.last_move)


# ============== Interactive play ==============
def computer_turn(session, executor, delay=0.0):
    n = session.config.grid_size
    log_with_time("CPU is thinking...", color=Fore.LIGHTBLACK_EX)
    round_id, future = session.dispatch_computer_move(executor, delay)
    tile = future.result()
    if session.complete_computer_move(round_id, tile):
        log_with_time(f"CPU flipped tile {session.last_move} {divmod(session.last_move, n)}", color=Fore.RED)


def refusal_reason(session, tile):
    if session.pending or not session.human_to_move:
        return "Wait for the CPU to finish its move."
    return f"Tile {tile} is locked for {session.locks.countdown(tile)} more move(s)."


def run_interactive(session, delay=0.0, read=input):
    hint_tile = None
    n = session.config.grid_size
    with concurrent.futures.ThreadPoolExecutor(max_workers=1) as executor:
        while True:
            print_status(session, hint_tile)
            outcome = session.outcome()
            if outcome is not None:
                color = Fore.GREEN if outcome.winner == HUMAN else Fore.RED if outcome.winner == COMPUTER else Fore.CYAN
                log_with_time(f"GAME OVER: {outcome.describe()}", color=color)
            elif session.human_to_move and not session.selector.candidates(session.locks):
                # Boxed in by locks: the turn passes to the CPU
                log_with_time("Every tile is locked for you; passing the turn.", color=Fore.YELLOW)
                session.pass_turn()
                hint_tile = None
                if session.outcome() is None:
                    computer_turn(session, executor, delay)
                continue
            try:
                cmd = read(PROMPT).strip().lower()
            except EOFError:
                return
            if cmd in ("q", "quit", "exit"):
                return
            if cmd in ("n", "new"):
                session.new_game()
                hint_tile = None
                continue
            if cmd in ("h", "hint"):
                hint_tile = session.hint()
                if hint_tile is NO_MOVE:
                    log_with_time("No legal move to suggest.", color=Fore.YELLOW)
                else:
                    log_with_time(f"Hint: tile {hint_tile} {divmod(hint_tile, n)}", color=Fore.GREEN)
                    if utils.VERBOSE:
                        ranking = session.selector.rank_candidates(session.state, HUMAN, session.locks)
                        vlog(f"Top moves: {format_ranking(ranking)}")
                continue
            if outcome is not None:
                log_with_time("Game is over: press n for a new game or q to quit.", color=Fore.YELLOW)
                continue
            try:
                tile = parse_tile(cmd, n)
                played = session.play_human(tile)
            except (ValueError, InvalidTileIndex) as e:
                log_with_time(f"Invalid input: {e}", color=Fore.RED)
                continue
            if not played:
                log_with_time(refusal_reason(session, tile), color=Fore.RED)
                continue
            hint_tile = None
            if session.outcome() is not None:
                continue
            computer_turn(session, executor, delay)


# ============== Self-play ==============
def play_selfplay_game(config, seed, human_blunder=0.0):
    """Play one full game: hint engine as yellow against the configured CPU."""
    rng = random.Random(seed)
    session = GameSession(config, rng)
    moves = []
    while session.outcome() is None:
        if session.human_to_move:
            cands = session.selector.candidates(session.locks)
            if human_blunder and cands and rng.random() < human_blunder:
                tile = rng.choice(cands)
            else:
                tile = session.hint()
            if tile is NO_MOVE:
                session.pass_turn()
                continue
            session.play_human(tile)
            moves.append((HUMAN, tile))
        else:
            tile = session.computer_move()
            if tile is NO_MOVE:
                session.pass_turn()
                continue
            moves.append((COMPUTER, tile))
    outcome = session.outcome()
    return {
        "seed": seed,
        "winner": outcome.winner,
        "reason": outcome.reason,
        "yellow": outcome.yellow,
        "grey": outcome.grey,
        "turns": session.state.turns_played,
        "moves": moves,
    }


def run_selfplay(config, games, seed=None, human_blunder=0.0, workers=None):
    base_seed = seed if seed is not None else random.randrange(2**31)
    results = []
    t0 = time.time()
    with concurrent.futures.ProcessPoolExecutor(max_workers=workers) as executor:
        future_to_info = {
            executor.submit(play_selfplay_game, config, base_seed + i, human_blunder): (time.time(), i)
            for i in range(games)
        }
        for future in concurrent.futures.as_completed(future_to_info):
            start, idx = future_to_info[future]
            result = future.result()
            results.append(result)
            winner = result["winner"]
            color = Fore.GREEN if winner == HUMAN else Fore.RED if winner == COMPUTER else Fore.CYAN
            label = "Draw" if winner is None else side_name(winner)
            duration_msg = f" (duration: {time.time() - start:.3f}s)" if utils.VERBOSE else ""
            log_with_time(
                f"Game {idx+1}/{games}: {label} by {result['reason']} "
                f"{result['yellow']}-{result['grey']} after {result['turns']} turns{duration_msg}",
                color=color,
            )

    summary = summarize(results)
    vlog(f"Self-play of {games} games", t0)
    log_with_time(
        f"Human (hint engine) wins: {summary['human']}, CPU wins: {summary['computer']}, "
        f"draws: {summary['draw']}, perfect boards: {summary['perfect']}, "
        f"avg turns: {summary['avg_turns']:.1f}",
        color=Fore.GREEN,
    )
    return results, summary


def summarize(results):
    summary = {"human": 0, "computer": 0, "draw": 0, "perfect": 0, "avg_turns": 0.0}
    for r in results:
        if r["winner"] is None:
            summary["draw"] += 1
        elif r["winner"] == HUMAN:
            summary["human"] += 1
        else:
            summary["computer"] += 1
        if r["reason"] == "perfect":
            summary["perfect"] += 1
    if results:
        summary["avg_turns"] = sum(r["turns"] for r in results) / len(results)
    return summary


def build_parser():
    parser = argparse.ArgumentParser(description="Flip Wars: flip tiles against a heuristic CPU")
    parser.add_argument("--grid-size", type=int, choices=SUPPORTED_GRID_SIZES, default=None, help="Board dimension (default: 4)")
    parser.add_argument("--difficulty", choices=sorted(DIFFICULTY_PRESETS), default="hard", help="Engine preset (default: hard)")
    parser.add_argument("--pattern", choices=[p.value for p in Pattern], default=None, help="Neighbourhood flipped by a move")
    parser.add_argument("--lock-policy", choices=[p.value for p in LockPolicy], default=None, help="How locked tiles behave")
    parser.add_argument("--lock-capacity", type=int, default=None, help="Tabu list size (default: derived from grid size)")
    parser.add_argument("--blunder", type=float, default=None, help="Probability the CPU plays a random legal tile")
    parser.add_argument("--lookahead", type=int, choices=(1, 2), default=None, help="Search plies for every move")
    parser.add_argument("--trap-detection", action="store_true", help="Penalise moves that hand the opponent a big swing")
    parser.add_argument("--tie-break", choices=[t.value for t in TieBreak], default=None, help="How equal scores are resolved")
    parser.add_argument("--max-rounds", type=int, default=None, help="Rounds before the game is decided on score (default: 20)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for every random choice")
    parser.add_argument("--delay", type=float, default=0.8, help="CPU thinking delay in seconds (default: 0.8)")
    parser.add_argument("--selfplay", type=int, default=None, metavar="GAMES", help="Run hint-engine vs CPU games in parallel")
    parser.add_argument("--human-blunder", type=float, default=0.0, help="Random move probability for the self-play human")
    parser.add_argument("--workers", type=int, default=None, help="Processes for --selfplay (default: CPU count)")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--no-cache", action="store_true", help="Disable evaluation caching")
    return parser


def run_game(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    utils.start_time = time.time()
    utils.VERBOSE = args.verbose
    score_cache.CACHE_DISABLED = args.no_cache

    try:
        config = build_config(args)
    except ValueError as e:
        parser.error(str(e))

    if args.selfplay:
        run_selfplay(config, args.selfplay, seed=args.seed, human_blunder=args.human_blunder, workers=args.workers)
    else:
        log_with_time(
            f"Flip Wars {config.grid_size}x{config.grid_size}, {args.difficulty} "
            f"({config.lock_policy.value} locks, blunder {config.blunder_probability:.0%}, "
            f"{config.lookahead_plies}-ply)",
            color=Fore.CYAN,
        )
        session = GameSession(config, random.Random(args.seed))
        run_interactive(session, delay=args.delay)

    if utils.VERBOSE:
        score_cache.print_cache_summary()
    total_elapsed = time.time() - utils.start_time
    print(f"Total time: {int(total_elapsed // 60)}m {total_elapsed % 60:.1f}s")
