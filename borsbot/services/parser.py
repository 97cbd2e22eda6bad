"""
Parser for bot commands embedded in comment text.
"""

from borsbot.models.commands import MissingCommand, ParseResult, Ping, Try, UnknownCommand

DEFAULT_PREFIX = "@bors"

_CODE_FENCE = "```"
_COMMANDS = {
    "ping": Ping,
    "try": Try,
}


def parse_commands(text: str, prefix: str = DEFAULT_PREFIX) -> list[ParseResult]:
    """
    Parse every command invocation found in a comment.

    Each line that addresses the bot is parsed on its own, so a malformed
    invocation never hides a valid one elsewhere in the same comment.
    Lines inside fenced code blocks are skipped.

    Args:
        text: Comment body
        prefix: Token addressing the bot, e.g. ``@bors``

    Returns:
        Commands and parse errors, in the order they appear
    """
    results: list[ParseResult] = []
    in_code_block = False
    for line in text.splitlines():
        if line.lstrip().startswith(_CODE_FENCE):
            in_code_block = not in_code_block
            continue
        if in_code_block:
            continue
        result = _parse_line(line, prefix)
        if result is not None:
            results.append(result)
    return results


def _parse_line(line: str, prefix: str) -> ParseResult | None:
    tokens = line.split()
    if prefix not in tokens:
        return None

    arguments = tokens[tokens.index(prefix) + 1:]
    if not arguments:
        return MissingCommand()

    keyword = arguments[0]
    command = _COMMANDS.get(keyword)
    if command is None:
        return UnknownCommand(keyword)
    # ping and try take no arguments; anything after the keyword is ignored
    return command()
