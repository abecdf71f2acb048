import argparse
from typing import NamedTuple


class CliArgs(NamedTuple):
    port: int
    config_file: str
    log_level: str


class CliParser:
    @staticmethod
    def parse_arguments(argv=None) -> CliArgs:
        parser = argparse.ArgumentParser(
            description="Export Amazon CloudWatch metrics in Prometheus format"
        )
        parser.add_argument(
            "port",
            type=int,
            help="Port the /metrics endpoint listens on.",
        )
        parser.add_argument(
            "config_file",
            type=str,
            help="Path to the YAML configuration file.",
        )
        parser.add_argument(
            "--log-level",
            "-l",
            type=str.upper,
            choices=["DEBUG", "INFO", "WARNING", "ERROR"],
            default="INFO",
            help="Logging level (default: INFO).",
        )
        args = parser.parse_args(argv)
        return CliArgs(
            port=args.port,
            config_file=args.config_file,
            log_level=args.log_level,
        )
