from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

import uvicorn

from evomanager.app import create_app
from evomanager.config import load_manager_config
from evomanager.home import ensure_manager_layout, resolve_manager_home


def main() -> None:
    home = resolve_manager_home()
    paths = ensure_manager_layout(home)
    config = load_manager_config(paths)

    # Configure logging
    log_file = paths.logs_dir / "manager.log"
    logging.basicConfig(
        level=config.logging.level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            RotatingFileHandler(
                log_file,
                maxBytes=config.logging.max_size_mb * 1024 * 1024,
                backupCount=config.logging.backup_count,
                encoding="utf-8",
            ),
            logging.StreamHandler(),
        ],
    )

    host = os.environ.get("EVOMANAGER_BIND") or config.network.bind_host

    env_port = os.environ.get("EVOMANAGER_PORT")
    port = int(env_port) if env_port else config.network.port

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    main()
