"""Command-line entry point for ShopAssist."""

from __future__ import annotations

import argparse
import json
import subprocess
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from openai import OpenAIError

from shopassist import ChatService, IngestionService, InteractionLogRepository
from shopassist.config import config
from shopassist.embeddings import EmbeddingService
from shopassist.errors import InvalidRequestError, format_user_error, new_request_id
from shopassist.vector_store import get_vector_store

if TYPE_CHECKING:
    from collections.abc import Sequence
    from logging import Logger

PROJECT_ROOT = Path(__file__).resolve().parent
DEFAULT_APP = PROJECT_ROOT / "app.py"
ADMIN_COMMANDS = frozenset({"stats", "sessions", "logs", "delete-logs", "purge-logs"})


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Build the CLI parser and read command-line arguments."""  # noqa: DOC201
    parser = argparse.ArgumentParser(
        description="ShopAssist customer chat assistant.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ui = subparsers.add_parser("ui", help="Launch the Streamlit chat UI.")
    ui.add_argument(
        "--app",
        type=Path,
        default=DEFAULT_APP,
        help="Path to the Streamlit script (default: app.py).",
    )
    ui.add_argument(
        "--port",
        type=int,
        default=8501,
        help="Port for the Streamlit server (default: 8501).",
    )
    ui.add_argument(
        "--address",
        default="localhost",
        help="Bind address for the Streamlit server (default: localhost).",
    )
    ui.add_argument(
        "--show",
        dest="headless",
        action="store_false",
        help="Open Streamlit in a browser window instead of headless mode.",
    )
    ui.set_defaults(headless=True)

    ask = subparsers.add_parser("ask", help="Answer one message and print JSON.")
    ask.add_argument("message", help="Customer message.")
    ask.add_argument("--session-id", default=None, help="Existing session id.")

    docs = subparsers.add_parser(
        "ingest-docs", help="Index TXT/MD/PDF files into the knowledge base."
    )
    docs.add_argument("files", nargs="+", type=Path)
    docs.add_argument("--topic", default=None, help="Topic shown as source title.")

    products = subparsers.add_parser(
        "ingest-products", help="Index a JSON array of products."
    )
    products.add_argument("file", type=Path)

    subparsers.add_parser("stats", help="Print interaction log statistics.")
    subparsers.add_parser("sessions", help="List logged session ids.")
    logs = subparsers.add_parser("logs", help="Print the interactions of a session.")
    logs.add_argument("session_id")
    delete_logs = subparsers.add_parser(
        "delete-logs", help="Delete the interactions of a session."
    )
    delete_logs.add_argument("session_id")
    subparsers.add_parser("purge-logs", help="Delete every logged interaction.")
    return parser.parse_args(argv)


def build_streamlit_command(
    script_path: Path,
    *,
    port: int,
    headless: bool,
    address: str,
) -> list[str]:
    """Construct the streamlit CLI invocation."""  # noqa: DOC201
    return [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(script_path),
        "--server.port",
        str(port),
        "--server.address",
        address,
        "--server.headless",
        "true" if headless else "false",
    ]


def run_streamlit(command: Sequence[str], logger: Logger) -> int:
    """Execute the configured streamlit command and return its exit code."""  # noqa: DOC201
    try:
        result = subprocess.run(  # noqa: S603
            command,
            check=False,
            cwd=PROJECT_ROOT,
        )
    except KeyboardInterrupt:
        logger.info("ShopAssist UI stopped by user")
        return 0
    except OSError:
        logger.exception("Unable to launch Streamlit")
        return 1
    return result.returncode


def run_ui(args: argparse.Namespace, logger: Logger) -> int:
    script_path = (
        args.app if args.app.is_absolute() else (PROJECT_ROOT / args.app)
    ).resolve()
    if not script_path.exists():
        logger.error("Streamlit script not found: %s", script_path)
        return 1

    logger.info(
        "Starting ShopAssist UI at http://%s:%s (headless=%s)",
        args.address,
        args.port,
        args.headless,
    )
    command = build_streamlit_command(
        script_path,
        port=args.port,
        headless=args.headless,
        address=args.address,
    )
    return_code = run_streamlit(command, logger)
    if return_code != 0:
        logger.error("Streamlit exited with status %s", return_code)
    return return_code


def run_ask(
    service: ChatService, message: str, session_id: str | None, logger: Logger
) -> int:
    """Answer one message; failures print a generic message with a request id."""  # noqa: DOC201
    try:
        response = service.process_message(message, session_id)
    except InvalidRequestError as e:
        print(json.dumps({"error": str(e)}, ensure_ascii=False))  # noqa: T201
        return 2
    except Exception:
        request_id = new_request_id()
        logger.exception("Chat request %s failed", request_id)
        print(  # noqa: T201
            json.dumps(
                {"error": format_user_error(request_id), "requestId": request_id},
                ensure_ascii=False,
            )
        )
        return 1

    print(json.dumps(response.to_dict(), ensure_ascii=False, indent=2))  # noqa: T201
    return 0


def build_ingestion_service() -> IngestionService:
    backend = config.VECTOR_BACKEND
    kb_store = get_vector_store(backend, collection=config.KB_COLLECTION)  # type: ignore[arg-type]
    product_store = get_vector_store(backend, collection=config.PRODUCT_COLLECTION)  # type: ignore[arg-type]
    kb_store.load()
    product_store.load()
    return IngestionService(EmbeddingService(), kb_store, product_store)


def run_ingest_docs(args: argparse.Namespace, logger: Logger) -> int:
    service = build_ingestion_service()
    total = 0
    for file_path in args.files:
        try:
            total += service.ingest_file(file_path, topic=args.topic)
        except (OSError, ValueError, OpenAIError):
            logger.exception("Failed to ingest %s", file_path)
            return 1
    logger.info("Indexed %d chunks from %d files", total, len(args.files))
    return 0


def run_ingest_products(args: argparse.Namespace, logger: Logger) -> int:
    try:
        products = json.loads(args.file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        logger.exception("Unable to read products from %s", args.file)
        return 1
    if not isinstance(products, list):
        logger.error("%s must contain a JSON array of products", args.file)
        return 1

    try:
        count = build_ingestion_service().ingest_products(products)
    except InvalidRequestError:
        logger.exception("Invalid product batch")
        return 1
    except OpenAIError:
        logger.exception("Embedding request failed; no products indexed")
        return 1
    logger.info("Indexed %d products", count)
    return 0


def run_admin(
    args: argparse.Namespace, repository: InteractionLogRepository, logger: Logger
) -> int:
    """Run an interaction-log query and print its JSON result."""  # noqa: DOC201
    if args.command == "stats":
        result: object = repository.get_stats()
    elif args.command == "sessions":
        result = repository.get_all_sessions()
    elif args.command == "logs":
        result = [
            entry.to_dict() for entry in repository.get_by_session_id(args.session_id)
        ]
    elif args.command == "delete-logs":
        deleted = repository.delete_by_session_id(args.session_id)
        logger.info("Deleted %d interactions of session %s", deleted, args.session_id)
        result = {"sessionId": args.session_id, "deleted": deleted}
    else:
        repository.purge_all()
        result = {"purged": True}
    print(json.dumps(result, ensure_ascii=False, indent=2))  # noqa: T201
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Validate configuration and dispatch the requested command."""  # noqa: DOC201
    args = parse_args(argv)

    config.setup_logging()
    logger = config.get_logger(__name__)

    if args.command in ADMIN_COMMANDS:
        return run_admin(args, InteractionLogRepository(), logger)

    try:
        config.validate()
    except ValueError:
        logger.exception("Configuration invalid")
        return 1

    if args.command == "ui":
        return run_ui(args, logger)
    if args.command == "ask":
        return run_ask(ChatService.from_config(), args.message, args.session_id, logger)
    if args.command == "ingest-docs":
        return run_ingest_docs(args, logger)
    return run_ingest_products(args, logger)


if __name__ == "__main__":
    sys.exit(main())
