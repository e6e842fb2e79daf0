# errors.py
from typing import List


class SwapError(Exception):
    """
    The one fatal error of a swap run.

    Context is layered by raising a new SwapError from the underlying
    exception (``raise SwapError("failed to X") from e``), so the full
    story is carried on ``__cause__``.
    """


def error_chain(exc: BaseException) -> List[str]:
    """Returns the messages of `exc` and all of its causes, outermost first."""
    messages = []
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        messages.append(str(current) or type(current).__name__)
        current = current.__cause__ or current.__context__
    return messages


def format_error(exc: BaseException) -> str:
    chain = error_chain(exc)
    lines = [f"Error: {chain[0]}"]
    if len(chain) > 1:
        lines.append("")
        lines.append("Caused by:")
        for i, message in enumerate(chain[1:]):
            lines.append(f"    {i}: {message}")
    return "\n".join(lines)
