# blackgold/main.py
import argparse
import logging
import sys
import time

from blackgold.application.analysis.report_generator import ReportGenerator
from blackgold.application.engine import SlotEngine
from blackgold.domain.errors import EngineError
from blackgold.infrastructure.config.loaders.yaml_loader import ConfigError
from blackgold.infrastructure.config.paths import DEFAULT_MACHINE_CONFIG
from blackgold.infrastructure.logging.log_manager import initialize_logging


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Reel machine RTP verification")

    parser.add_argument(
        "-c", "--config",
        default=DEFAULT_MACHINE_CONFIG,
        help="Path to machine configuration file"
    )
    parser.add_argument(
        "--mode",
        choices=["exhaustive", "montecarlo", "all"],
        default="all",
        help="Which analysis to run"
    )
    parser.add_argument("--rounds", type=int, default=None, help="Monte Carlo rounds")
    parser.add_argument("--seed", type=int, default=None, help="Monte Carlo seed")
    parser.add_argument(
        "--execution",
        choices=["sequential", "thread", "process"],
        default=None,
        help="Execution mode for the exhaustive enumeration"
    )
    parser.add_argument("--workers", type=int, default=None, help="Worker count for pooled execution")
    parser.add_argument("--output", default=None, help="Directory for JSON reports")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")

    return parser.parse_args(argv)


def main(argv=None):
    """Entry point of the blackgold-analyze console script."""
    args = parse_arguments(argv)

    try:
        engine = SlotEngine.from_config_file(args.config)
    except (ConfigError, EngineError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    log_config = dict(engine.config.get("logging", {}))
    if args.verbose:
        log_config["level"] = "DEBUG"
        log_config["console_level"] = "DEBUG"
    initialize_logging(log_config)
    logger = logging.getLogger("main")

    start_time = time.time()
    reporter = ReportGenerator(args.output) if args.output else None
    exhaustive = None
    monte_carlo = None

    if args.mode in ("exhaustive", "all"):
        exhaustive = engine.run_exhaustive_analysis(execution=args.execution, max_workers=args.workers)
        print(f"Exhaustive: {exhaustive.combinations_evaluated} combinations, "
              f"RTP {exhaustive.rtp:.4%}, hit frequency {exhaustive.hit_frequency:.4%}, "
              f"meets target: {exhaustive.meets_target}")
        if reporter:
            reporter.write_report("exhaustive", exhaustive, engine.get_machine_info())

    if args.mode in ("montecarlo", "all"):
        monte_carlo = engine.run_monte_carlo(args.rounds, args.seed, show_progress=args.progress)
        print(f"Monte Carlo: {monte_carlo.rounds} rounds, RTP {monte_carlo.rtp:.4%}, "
              f"hit frequency {monte_carlo.hit_frequency:.4%}")
        for size, drawdown in sorted(monte_carlo.worst_drawdown_by_session_size.items()):
            if drawdown is None:
                print(f"  {size:>6} spins: not enough rounds")
                continue
            print(f"  {size:>6} spins: max loss {drawdown['max_loss']:.2f}, "
                  f"RTP {drawdown['window_rtp']:.2%}, risk {drawdown['risk_level']}")
        if reporter:
            reporter.write_report("montecarlo", monte_carlo, engine.get_machine_info())

    if reporter:
        logger.info(f"Summary: {reporter.summarize(exhaustive, monte_carlo)}")

    logger.info(f"Analysis completed in {time.time() - start_time:.2f} seconds")

    if exhaustive is not None and exhaustive.meets_target is False:
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
