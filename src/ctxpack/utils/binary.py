"""Telling text files from binary ones before loading them as contexts."""

from pathlib import Path

# Extensions that are never worth decoding
BINARY_EXTENSIONS = {
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tiff",
    # Office and print formats
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods",
    # Archives
    ".zip", ".tar", ".gz", ".rar", ".7z", ".bz2", ".xz",
    # Executables and compiled objects
    ".exe", ".dll", ".so", ".dylib", ".bin", ".pyc", ".pyo", ".class", ".o", ".wasm",
    # Media and fonts
    ".mp3", ".mp4", ".mov", ".wav", ".flac", ".ttf", ".otf", ".woff", ".woff2",
    # Databases
    ".db", ".sqlite", ".sqlite3",
}

# Control characters other than tab, LF, FF and CR
_CONTROL_BYTES = set(range(0, 9)) | {11} | set(range(14, 32)) | {127}


def is_binary_extension(path: str | Path) -> bool:
    return Path(path).suffix.lower() in BINARY_EXTENSIONS


def is_binary_content(content: bytes, sample_size: int = 8192, max_control_ratio: float = 0.1) -> bool:
    """Guess whether raw bytes are binary.

    A sample that contains NUL, fails to decode as UTF-8 (apart from a
    character cut off at the sample edge) or is dense with control bytes
    counts as binary. Non-ASCII text is fine.

    Args:
        content: Raw file content
        sample_size: Number of leading bytes to inspect
        max_control_ratio: Share of control bytes tolerated in text

    Returns:
        True if content appears to be binary
    """
    if not content:
        return False

    sample = content[:sample_size]
    if b"\x00" in sample:
        return True

    try:
        sample.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character split by the sample boundary is not binary.
        if len(content) <= sample_size or e.start < len(sample) - 3:
            return True

    control = sum(1 for byte in sample if byte in _CONTROL_BYTES)
    return control / len(sample) > max_control_ratio


def detect_binary(path: str | Path, content: bytes) -> bool:
    """Extension check first, then content sniffing."""
    return is_binary_extension(path) or is_binary_content(content)


def decode_text(content: bytes) -> str:
    """Decode file bytes as UTF-8 (BOM stripped, bad bytes replaced)."""
    return content.decode("utf-8-sig", errors="replace")
