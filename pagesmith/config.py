"""
pagesmith configuration — all environment variables in one place.

Read from environment at import time. Every value has a working default so
the kernel can run without any environment set up.
"""

from __future__ import annotations

import os

VIEWPORT_CHOICES = ("desktop", "tablet", "mobile")


class Settings:
    """Application settings from environment variables."""

    # Export defaults (document-wide global styles)
    CONTENT_WIDTH: str = os.environ.get("PAGESMITH_CONTENT_WIDTH", "600px")
    FONT_FAMILY: str = os.environ.get("PAGESMITH_FONT_FAMILY", "Arial, sans-serif")
    BODY_BACKGROUND: str = os.environ.get("PAGESMITH_BODY_BACKGROUND", "#f5f5f5")
    PRIMARY_COLOR: str = os.environ.get("PAGESMITH_PRIMARY_COLOR", "#007bff")
    SECONDARY_COLOR: str = os.environ.get("PAGESMITH_SECONDARY_COLOR", "#6c757d")

    # Editing session
    HISTORY_LIMIT: int = int(os.environ.get("PAGESMITH_HISTORY_LIMIT", "50"))
    DEFAULT_VIEWPORT: str = os.environ.get("PAGESMITH_DEFAULT_VIEWPORT", "desktop")

    # Storage
    STORAGE_DIR: str = os.environ.get("PAGESMITH_STORAGE_DIR", "./documents")

    # Logging (only the CLI configures handlers)
    LOG_LEVEL: str = os.environ.get("PAGESMITH_LOG_LEVEL", "INFO")

    @property
    def default_global_styles(self) -> dict[str, str]:
        return {
            "fontFamily": self.FONT_FAMILY,
            "primaryColor": self.PRIMARY_COLOR,
            "secondaryColor": self.SECONDARY_COLOR,
            "bodyBackground": self.BODY_BACKGROUND,
            "contentWidth": self.CONTENT_WIDTH,
        }


# Singleton instance
settings = Settings()

if settings.DEFAULT_VIEWPORT not in VIEWPORT_CHOICES:
    raise RuntimeError(
        f"PAGESMITH_DEFAULT_VIEWPORT must be one of {', '.join(VIEWPORT_CHOICES)}, "
        f"got {settings.DEFAULT_VIEWPORT!r}"
    )
if settings.HISTORY_LIMIT < 1:
    raise RuntimeError("PAGESMITH_HISTORY_LIMIT must be a positive integer")
