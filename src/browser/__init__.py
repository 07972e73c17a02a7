"""
Headless browser resources.

- pool: bounded pool of browser pages shared by browser-driven adapters
"""

from src.browser.pool import BrowserPool, PageHandle, PlaywrightLauncher, PoolStatus

__all__ = ["BrowserPool", "PageHandle", "PlaywrightLauncher", "PoolStatus"]
