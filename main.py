from play import run_game
import multiprocessing
import sys

if __name__ == '__main__':
    multiprocessing.freeze_support()
    run_game(sys.argv[1:])
