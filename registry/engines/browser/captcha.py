"""
CAPTCHA solving capability used by the browser engine's challenge step.

The solver is an opaque collaborator: it gets the challenge image and
returns a token to type back, or raises.
"""

from __future__ import annotations

import base64
import re
from dataclasses import dataclass
from typing import Protocol

from openai import AsyncOpenAI

from registry.config import ScraperSettings

SOLVER_PROMPT = (
    "The image is a text CAPTCHA from a government business registry. "
    "Reply with only the characters shown, no spaces or punctuation."
)


class CaptchaSolveError(RuntimeError):
    """
    Raised by solvers that could not produce a token.
    """


@dataclass(frozen=True)
class CaptchaChallenge:
    image: bytes
    page_url: str
    source: str
    content_type: str = "image/png"


class CaptchaSolver(Protocol):
    async def solve(self, challenge: CaptchaChallenge) -> str:
        """
        Return the solution token for ``challenge``.
        """


class OpenAIVisionCaptchaSolver:
    """
    Solver backed by an OpenAI-compatible vision chat completion.
    """

    def __init__(
        self,
        *,
        model: str = "gpt-4o",
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout)
        self._model = model

    async def solve(self, challenge: CaptchaChallenge) -> str:
        encoded = base64.b64encode(challenge.image).decode("ascii")
        response = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": SOLVER_PROMPT},
                        {
                            "type": "image_url",
                            "image_url": {"url": f"data:{challenge.content_type};base64,{encoded}"},
                        },
                    ],
                }
            ],
            temperature=0,
            max_tokens=16,
        )
        token = re.sub(r"\s+", "", response.choices[0].message.content or "")
        if not token:
            raise CaptchaSolveError(f"{challenge.source}: solver returned an empty token")
        return token


def build_captcha_solver(settings: ScraperSettings) -> CaptchaSolver | None:
    if settings.captcha_solver == "openai":
        return OpenAIVisionCaptchaSolver(model=settings.captcha_model)
    return None
