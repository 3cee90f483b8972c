import logging
import signal
import sys

from decompile_api.app import create_app
from decompile_api.config import Config

logger = logging.getLogger("server")


def log_level(name):
    # getLevelName maps unknown names to a "Level x" string.
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def _shutdown(signum, frame):
    logger.info(f"{signal.Signals(signum).name} received, shutting down gracefully")
    sys.exit(0)


def main():
    config = Config.from_env()
    logging.basicConfig(
        level=log_level(config.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Initialize Flask app
    app = create_app(config)

    signal.signal(signal.SIGTERM, _shutdown)
    signal.signal(signal.SIGINT, _shutdown)

    logger.info(f"Luau Decompiler API running on http://{config.host}:{config.port}")
    logger.info(f"Max file size: {config.max_file_size / 1024 / 1024:.2f} MB")
    logger.info(f"Binary path: {config.decompiler_path}")

    app.run(host=config.host, port=config.port, threaded=True)


if __name__ == '__main__':
    main()
