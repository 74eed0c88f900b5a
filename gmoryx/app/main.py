# gmoryx/app/main.py
import logging
import sys
import threading

from .config import load_config
from .errors import StartupFailure
from .lifecycle import ServerLifecycle

logger = logging.getLogger(__name__)


def main(stop_event=None) -> int:
    config = load_config()
    # uvicorn's trace level has no stdlib counterpart
    level = 'DEBUG' if config.log_level == 'trace' else config.log_level.upper()
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    lifecycle = ServerLifecycle(config=config)
    try:
        shown = lifecycle.activate()
    except StartupFailure as e:
        logger.error("%s", e)
        return 1

    print(f"Web server: {shown}")
    print("Please access from other machine.")
    stop_event = stop_event or threading.Event()
    try:
        stop_event.wait()
    except KeyboardInterrupt:
        pass
    finally:
        lifecycle.deactivate()
    return 0


if __name__ == '__main__':
    sys.exit(main())
