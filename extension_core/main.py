#!/usr/bin/env python3
"""
Extension Host: FastAPI приложение с движком расширений.
Запускает admin API на порту 11000.
"""

import os

import uvicorn

from .app import create_app
from .config import load_config
from .db import create_engine
from .extensions.gallery import create_gallery_extension


def main() -> None:
    config = load_config()
    engine = create_engine(config.db_url, echo=config.sql_echo)
    app = create_app([create_gallery_extension(engine)], config=config, engine=engine)

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "11000"))
    uvicorn.run(app, host=host, port=port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()
