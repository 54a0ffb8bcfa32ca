"""
Language detection from file paths.

Maps the final extension of a file name onto a supported language through a
static table. Detection is pure: it never touches the filesystem and never
raises, an unknown extension simply yields None.
"""

import logging
import re
from typing import Dict, Optional, Set

logger = logging.getLogger(__name__)

# Extension (lower case, without the dot) to language mapping
EXTENSION_LANGUAGE_MAP: Dict[str, str] = {
    # Java
    "java": "java",
    # Python
    "py": "python",
    # TypeScript
    "ts": "typescript",
    "tsx": "typescript",
    # JavaScript
    "js": "javascript",
    "jsx": "javascript",
}

_PATH_SEPARATORS = re.compile(r"[\\/]")


def _final_extension(file_path: str) -> Optional[str]:
    """Text after the last dot of the file name, lower-cased."""
    file_name = _PATH_SEPARATORS.split(file_path)[-1]
    if "." not in file_name:
        return None
    return file_name.rsplit(".", 1)[1].lower()


def detect_language(file_path: str) -> Optional[str]:
    """
    Detect the programming language of a file from its extension.

    Args:
        file_path: Path or bare name of the source file

    Returns:
        Language identifier, or None if the file type is not parseable
    """
    if not isinstance(file_path, str) or not file_path:
        return None

    extension = _final_extension(file_path)
    language = EXTENSION_LANGUAGE_MAP.get(extension) if extension else None

    if language:
        logger.debug(f"Detected language '{language}' for {file_path}")
    else:
        logger.debug(f"No supported language for {file_path}")
    return language


def is_supported_file(file_path: str) -> bool:
    """Check whether a file would be routed to a parser."""
    return detect_language(file_path) is not None


def get_supported_extensions() -> Set[str]:
    """
    Get set of all supported file extensions.

    Returns:
        Set of file extensions including the dot (e.g., {'.py', '.js'})
    """
    return {f".{extension}" for extension in EXTENSION_LANGUAGE_MAP}
