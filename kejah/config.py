"""Environment-driven settings."""

import os
from typing import Optional


class Settings:
    """Application settings read from the environment.

    Values are captured when the instance is created; call ``get_settings()``
    again after changing the environment (tests do this through
    ``monkeypatch``).
    """

    def __init__(self) -> None:
        self.SERVICE_NAME: str = os.environ.get("SERVICE_NAME", "kejah-backend")

        # Backend selection: auto | supabase | memory
        self.BACKEND: str = os.environ.get("KEJAH_BACKEND", "auto").lower()

        # Supabase
        self.SUPABASE_URL: Optional[str] = os.environ.get("SUPABASE_URL")
        self.SUPABASE_KEY: Optional[str] = (
            os.environ.get("SUPABASE_KEY") or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        )
        self.SUPABASE_STORAGE_BUCKET: str = os.environ.get("SUPABASE_STORAGE_BUCKET", "listings")

        # Moderation
        self.REPORT_SUSPENSION_THRESHOLD: int = int(os.environ.get("REPORT_SUSPENSION_THRESHOLD", "3"))

        # Paid listing packages
        self.STANDARD_PACKAGE_PRICE: float = float(os.environ.get("STANDARD_PACKAGE_PRICE", "500"))
        self.PREMIUM_PACKAGE_PRICE: float = float(os.environ.get("PREMIUM_PACKAGE_PRICE", "1000"))

        # In-memory backend
        self.MOCK_OTP_CODE: str = os.environ.get("MOCK_OTP_CODE", "123456")
        self.MOCK_STORAGE_BASE_URL: str = os.environ.get(
            "MOCK_STORAGE_BASE_URL", "https://storage.kejah.local/listings"
        )

    @property
    def supabase_configured(self) -> bool:
        """True when both Supabase URL and key look like real values."""
        if not self.SUPABASE_URL or not self.SUPABASE_KEY:
            return False
        return not self.SUPABASE_KEY.startswith("PASTE_")

    def package_price(self, package: str) -> float:
        if package == "premium":
            return self.PREMIUM_PACKAGE_PRICE
        return self.STANDARD_PACKAGE_PRICE


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
