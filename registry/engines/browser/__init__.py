"""
Playwright-backed engine for script-rendered and CAPTCHA-protected registries.
"""

from registry.engines.browser.captcha import (
    CaptchaChallenge,
    CaptchaSolveError,
    CaptchaSolver,
    OpenAIVisionCaptchaSolver,
    build_captcha_solver,
)
from registry.engines.browser.engine import BrowserScrapeEngine
from registry.engines.browser.stealth import StealthBrowser, random_fingerprint

__all__ = [
    "BrowserScrapeEngine",
    "CaptchaChallenge",
    "CaptchaSolveError",
    "CaptchaSolver",
    "OpenAIVisionCaptchaSolver",
    "StealthBrowser",
    "build_captcha_solver",
    "random_fingerprint",
]
