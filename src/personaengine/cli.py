"""Command-line interface for PersonaEngine."""

import argparse
import sys

import uvicorn

from personaengine import __version__
from personaengine.engine.classifier import classify
from personaengine.model.traits import WeightVector


def _classify_command(parsed: argparse.Namespace) -> int:
    weights = WeightVector(instinct=parsed.instinct, logic=parsed.logic, psyche=parsed.psyche)
    result = classify(weights, parsed.messages)
    print(f"{result.code} {result.name} ({result.key})")
    print(result.description)
    print(f"Confidence: {result.confidence_percent}%")
    return 0


def _serve_command(parsed: argparse.Namespace) -> int:
    print(f"Starting PersonaEngine server at http://{parsed.host}:{parsed.port}")
    print("Press Ctrl+C to stop")

    uvicorn.run(
        "personaengine.server.app:app",
        host=parsed.host,
        port=parsed.port,
        reload=parsed.reload,
    )
    return 0


def main(args: list[str] | None = None) -> int:
    """Run the PersonaEngine CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv[1:].

    Returns:
        Exit code (0 for success).
    """
    parser = argparse.ArgumentParser(
        prog="personaengine",
        description="PersonaEngine - trait weights and persona classification",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")
    serve.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    serve.set_defaults(handler=_serve_command)

    classify_parser = subparsers.add_parser("classify", help="Classify a weight triple")
    classify_parser.add_argument("--instinct", type=float, required=True)
    classify_parser.add_argument("--logic", type=float, required=True)
    classify_parser.add_argument("--psyche", type=float, required=True)
    classify_parser.add_argument(
        "--messages", type=int, default=0, help="Message count backing the weights"
    )
    classify_parser.set_defaults(handler=_classify_command)

    parsed = parser.parse_args(args)
    if parsed.command is None:
        parser.print_help()
        return 1
    return parsed.handler(parsed)


if __name__ == "__main__":
    sys.exit(main())
