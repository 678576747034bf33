"""
kidscreen: renders a family dashboard (weather, calendar, air quality, a
picture and generated blurbs) to a PNG.

Usage:
    python -m kidscreen [--config PATH] [--img screen.png] [--fake] [--dev] [--addr :9999]
"""
import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from kidscreen.agenda import calendar_options
from kidscreen.config import ConfigError, default_config_path, load_env_file, read_config
from kidscreen.log import setup_logging
from kidscreen.render import RenderError
from kidscreen.screen import run


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="kidscreen", description="Render the dashboard screen to a PNG.")
    parser.add_argument("--config", type=Path, default=None,
                        help="path to the config file (default: ~/.config/kidscreen/config.yaml)")
    parser.add_argument("--dev", action="store_true", help="keep a webserver running to work on the screen")
    parser.add_argument("--addr", default=":9999", help="the address the webserver listens on in dev mode")
    parser.add_argument("--fake", action="store_true", help="use fake data instead of the network")
    parser.add_argument("--img", type=Path, default=Path("screen.png"), help="where to save the rendered image")
    parser.add_argument("--verbose", action="store_true", help="log debug output")
    parser.add_argument("--log-file", type=Path, default=None, help="also log to this file")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    load_env_file()
    args = parse_args(argv)
    setup_logging(args.verbose, args.log_file)

    config_path = args.config or default_config_path()
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = read_config(f)
        # Surface bad attendee filters before anything is fetched.
        calendar_options(config)
    except OSError as e:
        logging.critical(f"❌ Failed to open config file {config_path}: {e}")
        return 1
    except ConfigError as e:
        logging.critical(f"❌ Failed to read config file {config_path}: {e}")
        return 1
    logging.info(f"✅ Loaded configuration from {config_path}")

    try:
        run(config, dev=args.dev, fake=args.fake, img=args.img, addr=args.addr)
    except (RenderError, OSError) as e:
        logging.critical(f"❌ Failed to render: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
