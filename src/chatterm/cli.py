import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from chatterm import __version__
from chatterm.app import ChatTermApp
from chatterm.config import load_config, reconfigure, save_config, setup_logging
from chatterm.core.client import ChatClient
from chatterm.core.errors import ConfigError, TranscriptFormatError
from chatterm.core.session import ChatSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatterm",
        description="Chat with an OpenAI-compatible model from the terminal.",
    )
    parser.add_argument("--session", metavar="PATH",
                        help="transcript file to resume; saved back on ^S and on exit")
    parser.add_argument("--reconfigure", action="store_true",
                        help="prompt for API key, model and token budget, then save them")
    parser.add_argument("--config", metavar="PATH", type=Path, help="config file to use")
    parser.add_argument("--log-file", metavar="PATH", help="write logs to this file")
    parser.add_argument("--debug", action="store_true", help="log at DEBUG level")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def create_session(client, token_budget: int, path: Optional[str]) -> ChatSession:
    """
    New session, or one resumed from ``path`` when that file exists.

    Raises:
        TranscriptFormatError, OSError: the transcript could not be loaded.
    """
    if path and Path(path).exists():
        return ChatSession.from_file(client, token_budget, path)
    return ChatSession(client, token_budget, path=path)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file, args.debug)

    try:
        config = load_config(args.config)
        if args.reconfigure or not config.openai_api_key:
            config = reconfigure(config)
            saved = save_config(config, args.config)
            print(f"Configuration saved to {saved}")
    except ConfigError as e:
        print(f"chatterm: {e}", file=sys.stderr)
        return 1

    if not config.openai_api_key:
        print("chatterm: no API key configured", file=sys.stderr)
        return 1

    client = ChatClient.from_config(config)
    try:
        session = create_session(client, config.max_tokens, args.session)
    except (TranscriptFormatError, OSError) as e:
        print(f"chatterm: cannot load session {args.session}: {e}", file=sys.stderr)
        return 1

    logger.info("Starting session %s with %d entries", session.name, len(session.transcript))
    ChatTermApp(session).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
