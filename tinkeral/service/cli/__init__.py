"""tinkeral command-line interface (package entrypoint).

Argument parsing lives in ``cli_parser`` and subcommand handlers in
``cli_actions``; this module only dispatches.
"""

from __future__ import annotations

import sys
from typing import Optional

from .cli_actions import handle_chat, handle_conversations, handle_models, handle_tokens
from .cli_parser import build_parser

_HANDLERS = {
    "chat": handle_chat,
    "models": handle_models,
    "tokens": handle_tokens,
    "conversations": handle_conversations,
}


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entrypoint.

    Parameters
    ----------
    argv: Optional[list[str]]
        Argument vector; when ``None`` uses ``sys.argv[1:]``.

    Returns
    -------
    int
        Process exit code (0 success, non-zero on error).
    """
    parser = build_parser()
    args = parser.parse_args(list(sys.argv[1:] if argv is None else argv))
    handler = _HANDLERS.get(args.cmd)
    if handler is None:
        parser.print_help()
        return 2
    return handler(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
