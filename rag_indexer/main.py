# rag_indexer/main.py

import asyncio
import logging

import uvicorn
from components.api_app.main import create_app
from shared.initializer import (
    create_arg_parser,
    initialize_services_from_args,
)

logger = logging.getLogger(__name__)


async def main() -> None:
    """
    Initializes the core services and serves the HTTP API.
    """
    parser = create_arg_parser()
    parser.description = "Run the RAG Indexing Server."
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s:%(name)s:%(message)s",
    )

    config, services = await initialize_services_from_args(args)

    app = create_app(services)
    server_config = uvicorn.Config(app, host=config.server.host, port=config.server.port)
    server = uvicorn.Server(server_config)
    print(f"API will be served on http://{config.server.host}:{config.server.port}")
    await server.serve()


def run() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("Server shut down gracefully.")


if __name__ == "__main__":
    run()
