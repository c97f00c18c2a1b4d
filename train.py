#!/usr/bin/env python3
"""
Threes n-tuple TD training script

Example usage:
    python train.py --total 100000 --block 1000 \
        --slide "init=65536,65536 alpha=0.01 save=weights.bin" --save stats.json
"""
import argparse
import logging
import sys
import time

from threes import GameRunner, create_agent, save_stats

logger = logging.getLogger("train")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train a Threes n-tuple agent")

    # Episodes
    parser.add_argument("--total", type=int, default=1000, help="Number of episodes to play")
    parser.add_argument("--block", type=int, default=1000, help="Episodes per statistics block")
    parser.add_argument("--limit", type=int, default=0, help="Max slides per episode (0 = unlimited)")

    # Agents
    parser.add_argument("--slider", type=str, default="ntuple",
                        choices=["ntuple", "random", "merge"], help="Player variant")
    parser.add_argument("--slide", type=str, default="init=65536,65536 alpha=0.01",
                        help="Player options, e.g. \"init=65536,65536 alpha=0.01 load=w.bin save=w.bin\"")
    parser.add_argument("--place", type=str, default="", help="Environment options, e.g. \"seed=7\"")

    # Output
    parser.add_argument("--save", type=str, help="Write block statistics as JSON to this path")
    parser.add_argument("--summary", action="store_true", help="Print a table for every block")
    parser.add_argument("--no-progress", action="store_true", help="Disable the progress bar")
    parser.add_argument("--log-file", type=str, help="Also write the log to this file")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")

    return parser.parse_args(argv)


def setup_logging(log_file=None, verbose=False):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
        force=True,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, args.verbose)

    start_time = time.time()
    logger.info(f"Starting {args.total} episodes, {args.slider} slider [{args.slide}] vs placer [{args.place}]")

    # configuration and weight file errors propagate and end the run
    with create_agent(args.slider, args.slide) as slider, create_agent("place", args.place) as placer:
        runner = GameRunner(slider, placer, block=args.block, limit=args.limit or None)
        blocks = runner.run(args.total, progress=not args.no_progress)

    if args.summary:
        for stats in blocks:
            print(stats.summary_table())
            print()

    if args.save:
        save_stats(args.save, blocks)
        logger.info(f"Statistics saved to {args.save}")

    elapsed_time = time.time() - start_time
    logger.info(f"Done in {elapsed_time:.1f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
