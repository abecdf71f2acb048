import logging
import signal
import sys

from prometheus_client import start_http_server

# Internal Module Imports
from logger import LoggerSetup
from cli_parser import CliParser, CliArgs
from cloudwatch_exporter import CloudWatchCollector, PrometheusRequestObserver
from cloudwatch_exporter.config import build_config_source

# Constants & Config
from cloudwatch_exporter.core.constants import LOG_FORMAT


def create_collector(config_file: str, logger: logging.Logger) -> CloudWatchCollector:
    """Load the configuration file and register a collector for it."""
    config_source = build_config_source(
        yaml_file=config_file,
        observer=PrometheusRequestObserver(),
    )
    collector = CloudWatchCollector(config_source).register()
    logger.info(f"Loaded configuration from {config_file}")
    return collector


def install_reload_handler(collector: CloudWatchCollector) -> None:
    """Reload the configuration on SIGHUP."""

    def _reload(signum, frame) -> None:
        collector.reload_config()

    signal.signal(signal.SIGHUP, _reload)


def main() -> None:
    # Parse CLI arguments using CliParser
    args: CliArgs = CliParser.parse_arguments()

    # Initialize logger (configured once)
    logger = LoggerSetup(LOG_FORMAT, args.log_level).get_logger("main")
    logger.info("Starting CloudWatch exporter")

    try:
        collector = create_collector(args.config_file, logger)
    except Exception as e:
        logger.exception(f"Unable to load configuration {args.config_file}: {e}")
        sys.exit(1)

    install_reload_handler(collector)
    start_http_server(args.port)
    logger.info(f"Serving metrics on port {args.port}")

    while True:
        signal.pause()


if __name__ == "__main__":
    main()
