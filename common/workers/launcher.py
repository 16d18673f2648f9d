"""
Shared entry point for long-running workers: telemetry, logging, signals and
the start/stop lifecycle.
"""

import asyncio
import logging
import signal
import sys
from typing import Optional, Any, Callable

from common.core.otel_axiom_exporter import _initialize_telemetry, get_logger


class WorkerLauncher:
    """
    Runs any object exposing ``async start()``, ``async stop()`` and a
    ``running`` flag. An optional ``request_stop()`` is called on SIGINT/SIGTERM.
    """

    def __init__(self):
        self.logger = get_logger(__name__)
        self.worker_instance: Optional[Any] = None

    def _setup_logging(self, level: int = logging.INFO):
        logging.basicConfig(
            level=level,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )

    def _signal_handler(self, signum: int) -> None:
        """
        Ask the worker to stop after its current pass.

        Workers with a ``request_stop()`` hook are woken from their idle wait;
        others only see ``running`` drop to False.
        """
        self.logger.info(f"Received signal {signum}, finishing current pass...")
        if self.worker_instance is None:
            return
        request_stop = getattr(self.worker_instance, "request_stop", None)
        if request_stop is not None:
            request_stop()
        else:
            self.worker_instance.running = False

    def _register_signal_handlers(self):
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(signum, self._signal_handler, signum)

    async def _run_worker_async(self, worker_instance: Any, worker_name: str):
        self.worker_instance = worker_instance
        self._register_signal_handlers()

        try:
            self.logger.info(f"Starting {worker_name}...")
            await worker_instance.start()
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt, shutting down worker...")
        except Exception as e:
            self.logger.error(f"Worker failed with error: {e}", exc_info=True)
        finally:
            try:
                await worker_instance.stop()
                self.logger.info("Worker shutdown complete")
            except Exception as cleanup_error:
                self.logger.error(f"Error during cleanup: {cleanup_error}")

    def run(
        self,
        worker_factory: Callable,
        worker_name: str,
        setup_logging: bool = True,
        log_level: int = logging.INFO,
        factory_args: tuple = (),
        factory_kwargs: dict = None,
    ):
        """
        Main entry point to run a worker.

        Args:
            worker_factory: Function/class that creates the worker instance
            worker_name: Human readable name for logging
            setup_logging: Whether to setup logging configuration
            log_level: Root log level when logging is set up here
            factory_args: Args to pass to worker factory
            factory_kwargs: Kwargs to pass to worker factory
        """
        if factory_kwargs is None:
            factory_kwargs = {}

        _initialize_telemetry()
        if setup_logging:
            self._setup_logging(log_level)

        self.logger.info(f"Configuring {worker_name}...")
        worker_instance = worker_factory(*factory_args, **factory_kwargs)

        try:
            asyncio.run(self._run_worker_async(worker_instance, worker_name))
        except KeyboardInterrupt:
            self.logger.info("Final keyboard interrupt caught, exiting...")
            sys.exit(0)

    def run_with_cli(
        self,
        worker_factory: Callable,
        worker_name: str,
        setup_logging: bool = True,
        cli_setup_func: Optional[Callable] = None,
    ):
        """
        Run worker with CLI argument parsing support.

        Args:
            cli_setup_func: Returns (args, factory_args, factory_kwargs). A
                ``log_level`` attribute on args sets the root log level.
        """
        log_level = logging.INFO
        if cli_setup_func:
            args, factory_args, factory_kwargs = cli_setup_func()
            if hasattr(args, "log_level"):
                log_level = getattr(logging, args.log_level)
        else:
            factory_args, factory_kwargs = (), {}

        self.run(
            worker_factory=worker_factory,
            worker_name=worker_name,
            setup_logging=setup_logging,
            log_level=log_level,
            factory_args=factory_args,
            factory_kwargs=factory_kwargs,
        )
