"""CLI parser construction for ``tinkeral``.

This module wires subparsers but contains no execution logic. Subcommand
handlers live in ``cli_actions``.
"""

from __future__ import annotations

import argparse

from ...base.factory import ProviderFactory
from ...config.defaults import CLI_PROG, DEFAULT_PROVIDER


def _add_provider_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--provider", default=DEFAULT_PROVIDER, choices=ProviderFactory.supported())
    parser.add_argument("--model", default=None)


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level CLI parser and subcommands.

    Returns
    -------
    argparse.ArgumentParser
        Parser with ``chat``, ``models``, ``tokens`` and ``conversations``
        subcommands. No I/O happens here.
    """
    p = argparse.ArgumentParser(prog=CLI_PROG, description="Chat with hosted LLMs from the terminal")
    sub = p.add_subparsers(dest="cmd")

    p_chat = sub.add_parser("chat", help="Send one prompt and stream the reply")
    p_chat.add_argument("--prompt", required=True)
    _add_provider_flags(p_chat)
    p_chat.add_argument("--db", default=None, help="SQLite file to store the conversation in")
    p_chat.add_argument("--system", default=None, help="Optional system prompt")

    p_models = sub.add_parser("models", help="List models available to the configured key")
    _add_provider_flags(p_models)

    p_tokens = sub.add_parser("tokens", help="Count tokens for a text")
    p_tokens.add_argument("--text", required=True)
    _add_provider_flags(p_tokens)

    p_conv = sub.add_parser("conversations", help="List stored conversations")
    p_conv.add_argument("--db", default=None)

    return p


__all__ = ["build_parser"]
