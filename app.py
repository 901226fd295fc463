#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the B2B Raw Materials Marketplace API
"""

from marketplace import create_app
from marketplace.build import build_database
from marketplace.logger import get_logger
import sys
import os
from dotenv import load_dotenv

# Secrets and seed passwords come from .env; 'python generate_env.py' writes one
load_dotenv()

import argparse

app = create_app()
logger = get_logger("marketplace.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='B2B Raw Materials Marketplace')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables and the admin user, then exit without starting the server')
    parser.add_argument('--enable-debug-data', action='store_true', default=True,
                        help='Insert demo suppliers, buyers and products (default: enabled)')
    parser.add_argument('--no-debug-data', action='store_false', dest='enable_debug_data',
                        help='Skip the demo suppliers, buyers and products')
    return parser.parse_args()


def env_flag(name, default='False'):
    return os.environ.get(name, default).lower() in ('true', '1', 'yes', 'on')


if __name__ == '__main__':
    args = parse_arguments()

    build_database(
        enable_debug_data=args.enable_debug_data and not args.build_only,
        app=app,
    )

    if args.build_only:
        logger.info("Marketplace database built; not starting the API server")
        sys.exit(0)

    # Debug and reloader stay off unless asked for; bind to localhost by default
    debug_mode = env_flag('FLASK_DEBUG')
    use_reloader = env_flag('USE_RELOADER')
    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Marketplace API listening on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
