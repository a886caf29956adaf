"""Application entry point for AI Professor backend server."""

from aiprofessor.app import App
from aiprofessor.config import Config
from aiprofessor.logging import setup_logging
from aiprofessor.web.runner import run_server


def main() -> None:
    config = Config()
    setup_logging(config.debug)
    app = App(config)
    run_server(app, config)


if __name__ == "__main__":
    main()
