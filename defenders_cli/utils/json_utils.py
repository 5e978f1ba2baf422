"""JSON handling utilities backed by orjson."""

import os
from pathlib import Path
from typing import Any

import orjson


class JsonHandler:
    """Thin orjson wrapper used for az output and the config file."""

    @staticmethod
    def dumps(data: Any) -> str:
        """Serialize data to a compact JSON string."""
        return orjson.dumps(data).decode("utf-8")

    @staticmethod
    def loads(json_str: str | bytes) -> Any:
        """Parse a JSON string. Raises orjson.JSONDecodeError on bad input."""
        return orjson.loads(json_str)

    @staticmethod
    def dump_file(data: Any, path: Path, mode: int = 0o600) -> None:
        """
        Write data to a JSON file readable only by its owner.

        Args:
            data: Data to write
            path: File path
            mode: Permission bits applied to the file
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
        with os.fdopen(fd, "wb") as f:
            f.write(orjson.dumps(data, option=orjson.OPT_INDENT_2))

        # os.open only applies mode on creation
        os.chmod(path, mode)

    @staticmethod
    def load_file(path: Path) -> Any:
        """Load data from JSON file."""
        with open(path, "rb") as f:
            return orjson.loads(f.read())

    @staticmethod
    def safe_loads(json_str: str | bytes, default: Any = None) -> Any:
        """
        Safely parse JSON string, returning default on error.

        Args:
            json_str: JSON string to parse
            default: Default value if parsing fails

        Returns:
            Parsed object or default
        """
        try:
            return orjson.loads(json_str)
        except (orjson.JSONDecodeError, TypeError):
            return default
