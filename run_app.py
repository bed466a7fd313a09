#!/usr/bin/env python3
"""
Simple runner script for the Flask application.
This script ensures the correct Python path is set and runs the app.
"""

import argparse
import sys
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from config_manager import ConfigManager
from app.logging_config import setup_logging, stop_logging
from app.main import create_app


def main() -> None:
    parser = argparse.ArgumentParser(description="Markdown Publisher web application")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    config_manager = ConfigManager()
    app_config = config_manager.get_app_config()
    host = args.host or app_config.host
    port = args.port or app_config.port
    debug = args.debug or app_config.debug
    quota_settings = config_manager.get_quota_settings()

    setup_logging(debug=debug, log_file=config_manager.get_paths_config().log_file or None)
    app = create_app(config_manager)

    print("🚀 Starting Markdown Publisher...")
    print(f"📁 Database: {app.extensions['publisher']['db_path']}")
    print(f"📋 Daily limit: {quota_settings.daily_limit} per IP, "
          f"window {quota_settings.reset_window_hours}h")
    print(f"🌐 Server: {host}:{port}")

    try:
        app.run(
            host=host,
            port=port,
            debug=debug
        )
    finally:
        app.extensions["publisher"]["publishing"]["service"].shutdown()
        stop_logging()


if __name__ == "__main__":
    main()
