import os
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parent


class Settings:
    def __init__(self) -> None:
        # SQLite file next to the working directory unless overridden
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./contacts.db")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.STATIC_DIR: Path = Path(os.getenv("STATIC_DIR", str(PACKAGE_DIR / "static")))
        self.EXPORT_FILENAME: str = os.getenv("EXPORT_FILENAME", "pk_tech_Contacts.vcf")


settings = Settings()
