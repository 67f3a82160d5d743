"""Application entry point for the AI Voice Studio project."""

from __future__ import annotations

from typing import Optional

import uvicorn

from config.settings import load_config
from modules.ui.layout import UI_PATH, build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration and serve the API with the Gradio interface mounted."""
    config = load_config(config_path)
    logger = setup_logging(config)
    app = build_app(config)
    logger.info("Serving UI at http://%s:%d%s", config.host, config.port, UI_PATH)
    uvicorn.run(app, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
