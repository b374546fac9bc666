"""Application entry point for Quiz Runner."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

from quiz_runner.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_runner.constants.quiz_constants import DEFAULT_QUESTION_BANK_PATH
from quiz_runner.core.question_bank_loader import QuestionBankError
from quiz_runner.core.quiz_manager import QuizManager
from quiz_runner.core.services.question_store import QuestionStore
from quiz_runner.server.api_server import start_api_server
from quiz_runner.utils.logging_config import configure_logging


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve a question bank as a browser quiz.")
    parser.add_argument("--bank", type=Path, default=Path(DEFAULT_QUESTION_BANK_PATH), help="question bank JSON file")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Load the question bank and serve the quiz until interrupted."""
    args = _parse_args(argv)
    logger = configure_logging(args.log_level)
    logger.info("Starting Quiz Runner…")

    try:
        store = QuestionStore.from_file(args.bank)
    except QuestionBankError as exc:
        logger.error("Could not load the question bank: %s", exc)
        return 1

    quiz_manager = QuizManager(store)
    logger.info("Quiz available at http://%s:%d/", args.host, args.port)
    start_api_server(quiz_manager=quiz_manager, host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    sys.exit(main())
