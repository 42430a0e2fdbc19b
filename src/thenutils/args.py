"""Turns CLI-style tokens into a mapping of camel-cased flag names to values."""

import re
from typing import Dict, Optional, Sequence, Union

from .iteration import async_for

FLAG_PATTERN = re.compile(r"--?([A-Za-z0-9-]+)")
_HYPHENATED = re.compile(r"-([A-Za-z0-9])")


def camel_case(name: str) -> str:
    """``dry-run`` -> ``dryRun``"""
    return _HYPHENATED.sub(lambda match: match.group(1).upper(), name)


async def parse_args(tokens: Sequence[str]) -> Dict[str, Union[str, bool]]:
    """
    Scan ``tokens`` left to right.

    ``-x`` / ``--some-flag`` start a flag; the next non-flag token becomes its
    value. A flag directly followed by another flag, or by the end of the
    input, is set to True. Non-flag tokens with no flag waiting for a value
    are ignored.

    >>> await parse_args(["--name", "alice", "--verbose", "--count", "3"])
    {'name': 'alice', 'verbose': True, 'count': '3'}
    """
    parsed: Dict[str, Union[str, bool]] = {}
    pending: Optional[str] = None

    def consume(_, token: str) -> None:
        nonlocal pending
        match = FLAG_PATTERN.fullmatch(token)
        if match is None:
            if pending is not None:
                parsed[pending] = token
            pending = None
            return
        if pending is not None:
            parsed[pending] = True
        pending = camel_case(match.group(1))

    await async_for(tokens, consume)

    if pending is not None:
        parsed[pending] = True
    return parsed
