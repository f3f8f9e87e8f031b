# tclock/main.py
# Entry point: `tclock [options]` or `python -m tclock.main [options]`.

import sys

from tclock.clock_ui import ClockApp
from tclock.common import APP_NAME, logger, setup_logging
from tclock.config import parse_args


def main(argv=None) -> int:
    config = parse_args(argv)
    log_file = setup_logging(config.log_dir, config.verbosity)
    logger.info("%s starting in %s mode (log: %s)", APP_NAME, config.mode.name, log_file)

    app = ClockApp(config)
    app.run()

    logger.info("%s exited", APP_NAME)
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
