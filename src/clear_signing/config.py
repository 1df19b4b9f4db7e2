"""Runtime settings and logging setup."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip(), 0)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Engine settings.

    Attributes:
        default_chain_id: Chain used when typed data carries no domain chainId
        max_type_depth: Maximum EIP-712 struct nesting depth
        include_hidden: Emit hidden fields with visible=False instead of skipping them
        date_format: strftime pattern for the date formatter (always UTC)
    """

    default_chain_id: int = 1
    max_type_depth: int = 32
    include_hidden: bool = False
    date_format: str = DEFAULT_DATE_FORMAT

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """
        Build settings from environment variables.

        Environment Variables (can also be set in .env file):
          CLEAR_SIGNING_DEFAULT_CHAIN_ID   Fallback chain id (default: 1)
          CLEAR_SIGNING_MAX_TYPE_DEPTH     EIP-712 nesting bound (default: 32)
          CLEAR_SIGNING_INCLUDE_HIDDEN     Keep hidden fields in output (default: false)
          CLEAR_SIGNING_DATE_FORMAT        strftime pattern for dates
        """
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True), override=False)

        settings = cls(
            default_chain_id=_env_int("CLEAR_SIGNING_DEFAULT_CHAIN_ID", cls.default_chain_id),
            max_type_depth=_env_int("CLEAR_SIGNING_MAX_TYPE_DEPTH", cls.max_type_depth),
            include_hidden=_env_bool("CLEAR_SIGNING_INCLUDE_HIDDEN", cls.include_hidden),
            date_format=os.getenv("CLEAR_SIGNING_DATE_FORMAT") or cls.date_format,
        )
        if settings.max_type_depth < 1:
            raise ValueError("CLEAR_SIGNING_MAX_TYPE_DEPTH must be at least 1")
        logger.debug(f"Loaded settings: {settings}")
        return settings


def configure_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure root logging for applications embedding the library.

    Args:
        debug: Log INFO and above when True, otherwise silence output
        log_file: Optional file to write debug logs to (stderr when omitted)
    """
    if debug:
        if log_file is not None:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handler: logging.Handler = logging.FileHandler(log_file)
        else:
            handler = logging.StreamHandler(sys.stderr)
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=[handler],
            force=True,
        )
    else:
        logging.basicConfig(
            level=logging.CRITICAL,
            format='%(asctime)s - %(levelname)s - %(message)s',
            handlers=[logging.NullHandler()],
            force=True,
        )
