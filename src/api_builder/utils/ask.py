"""Interactive prompt used by post-deploy configuration steps."""

import asyncio

from api_builder.exceptions import PromptError


async def ask(question: str) -> str:
    """
    Read a single answer from stdin.

    Raises:
        PromptError: when the answer is blank
    """
    answer = await asyncio.to_thread(input, f'{question} ')
    if not answer:
        raise PromptError(f'{question} must be provided')
    return answer
