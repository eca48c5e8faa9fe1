"""
MPC driver entry point.
Loads configuration and serves the simulator websocket.
"""

import logging
from pathlib import Path
from typing import Optional

import yaml

from control.mpc_controller import MPCConfig, build_mpc_config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "mpc_config.yaml"


def configure_logging(level: int = logging.INFO) -> None:
    """Log to stderr and tmp/logs/mpc_stack.log."""
    log_dir = Path(__file__).parent / 'tmp' / 'logs'
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / 'mpc_stack.log'

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(str(log_file))
        ]
    )


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}


def load_mpc_config(config_path: Optional[str] = None) -> MPCConfig:
    """Load the YAML configuration and build controller settings from it."""
    return build_mpc_config(load_config(config_path))


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description='Run MPC driver for the simulator')
    parser.add_argument('--host', type=str, default='0.0.0.0',
                        help='Interface to listen on')
    parser.add_argument('--port', type=int, default=4567,
                        help='Websocket port (default: 4567)')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration YAML file (default: config/mpc_config.yaml)')
    parser.add_argument('--debug', action='store_true',
                        help='Log plan values for every cycle')

    args = parser.parse_args()
    configure_logging(logging.DEBUG if args.debug else logging.INFO)

    try:
        config = load_mpc_config(args.config)
    except ValueError as e:
        parser.error(f"Invalid configuration: {e}")

    from bridge.server import run_server
    run_server(host=args.host, port=args.port, config=config)


if __name__ == "__main__":
    main()
