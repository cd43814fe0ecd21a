import sys

import uvicorn

from .app import create_app
from .config_loader import ConfigSource


def main() -> int:
    source = ConfigSource()
    app = create_app(source)
    cfg = app.state.config
    # uvicorn reports bind failures itself and exits non-zero.
    uvicorn.run(app, host=cfg["host"], port=int(cfg["port"]), log_level=cfg["log_level"].lower(), access_log=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
