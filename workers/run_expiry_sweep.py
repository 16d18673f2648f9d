import argparse

from common.core.config import settings
from common.workers.launcher import WorkerLauncher
from packages.billing.workers.expiry_sweep_worker import ExpirySweepWorker


def setup_cli():
    """Setup CLI arguments and return parsed args with factory parameters."""
    parser = argparse.ArgumentParser(description="Subscription expiry sweep")
    parser.add_argument(
        "--interval",
        type=int,
        default=settings.expiry_sweep_interval_seconds,
        help="Seconds between sweeps (default: from settings)",
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single sweep and exit",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Log level (default: INFO)",
    )

    args = parser.parse_args()

    factory_args = ()
    factory_kwargs = {"interval_seconds": args.interval, "run_once": args.once}

    return args, factory_args, factory_kwargs


def main():
    WorkerLauncher().run_with_cli(
        worker_factory=ExpirySweepWorker,
        worker_name="Expiry Sweep Worker",
        cli_setup_func=setup_cli,
    )


if __name__ == "__main__":
    main()
