"""poolsweep CLI entry point."""
import argparse
import logging
import sys
import time
from poolsweep.core.config import load_config
from poolsweep.core.logging import setup_logging, get_run_id
from poolsweep.registry import init_sweepers
from poolsweep.runner import SweepRunner


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='poolsweep - remove leftover test user pools')
    parser.add_argument('--config', '-c', help='Path to YAML config file')
    parser.add_argument('--region', action='append',
                        help='Region to sweep (repeatable, overrides config)')
    parser.add_argument('--sweeper', action='append',
                        help='Sweeper to run (repeatable, default: all)')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Verbosity: -v=INFO, -vv=DEBUG')
    parser.add_argument('--json-logs', action='store_true',
                        help='Output logs in JSON format')
    parser.add_argument('--live-run', action='store_true',
                        help='Actually delete resources (default: dry-run)')
    parser.add_argument('--list', action='store_true', dest='list_sweepers',
                        help='List registered sweepers and exit')
    parser.add_argument('--check', action='store_true',
                        help='Check service availability per region and exit')
    parser.add_argument('--verify-destroyed', nargs='+', metavar='POOL_ID',
                        help='Check that these user pools are gone from --region and exit')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    registry = init_sweepers()

    if args.list_sweepers:
        for name in registry.names():
            print(name)
        return 0

    config = load_config(args.config)

    # CLI args override config
    if args.region:
        config.regions = args.region
    if args.sweeper:
        config.sweepers = args.sweeper
    if args.verbose:
        config.verbosity = args.verbose
    if args.json_logs:
        config.json_logs = True
    if args.live_run:
        config.dry_run = False

    unknown = [n for n in config.sweepers if n != "all" and n not in registry]
    if unknown:
        print(f"Unknown sweeper(s): {', '.join(unknown)}; "
              f"known: {', '.join(registry.names())}", file=sys.stderr)
        return 2

    setup_logging(config.verbosity, config.json_logs)
    logging.info(f"poolsweep run_id={get_run_id()} dry_run={config.dry_run}")

    runner = SweepRunner(config, registry)

    if args.check:
        for region, status in sorted(runner.check_regions().items()):
            print(f"{region}: {status}")
        return 0

    if args.verify_destroyed:
        if len(config.regions) != 1 or "all" in config.regions:
            print("--verify-destroyed needs exactly one --region", file=sys.stderr)
            return 2
        status = runner.verify_destroyed(config.regions[0], args.verify_destroyed)
        for pool_id, state in status.items():
            print(f"{pool_id}: {state}")
        return 0 if all(s == 'destroyed' for s in status.values()) else 1

    if not config.dry_run:
        logging.warning("LIVE RUN MODE - Resources WILL be deleted")
        try:
            for i in range(5, 0, -1):
                print(f"Starting in {i}s... (Ctrl+C to cancel)", end='\r')
                time.sleep(1)
            print(" " * 40, end='\r')
        except KeyboardInterrupt:
            logging.info("Cancelled by user")
            return 130

    ok = runner.run()
    runner.print_report()
    return 0 if ok else 1


if __name__ == '__main__':
    sys.exit(main())
