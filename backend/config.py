import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from security import hash_password

# .env lives in the project root, one level above backend/
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

SESSION_COOKIE_NAME = "timeacademy.sid"
SESSION_MAX_AGE = 24 * 60 * 60  # seconds
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@dataclass
class Settings:
    site_dir: str
    materials_file: str
    pdf_dir: str
    admin_username: str
    admin_password_hash: str
    environment: str = "development"
    log_level: str = "INFO"
    port: int = 3000

    @property
    def secure_cookies(self) -> bool:
        return self.environment == "production"

    @classmethod
    def from_env(cls, site_dir: Optional[str] = None) -> "Settings":
        site_dir = site_dir or os.getenv("SITE_DIR", ".")
        password_hash = os.getenv("ADMIN_PASSWORD_HASH")
        if not password_hash:
            password_hash = hash_password(os.getenv("ADMIN_PASSWORD", "timeacademy"))

        return cls(
            site_dir=site_dir,
            materials_file=os.getenv("MATERIALS_FILE", os.path.join(site_dir, "materials.json")),
            pdf_dir=os.getenv("PDF_DIR", os.path.join(site_dir, "pdf")),
            admin_username=os.getenv("ADMIN_USERNAME", "davian"),
            admin_password_hash=password_hash,
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", "3000")),
        )
