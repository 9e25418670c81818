"""Workflow document loading (YAML or XML) with caching."""

import threading
import time
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import yaml
from cachetools import TTLCache

from .workflow.models import WorkflowValidationError

YAML_SUFFIXES = {".yaml", ".yml"}
XML_SUFFIXES = {".xml"}

# Short choice attribute names accepted in XML documents
XML_ATTRIBUTE_ALIASES = {
    "optionA": "optionAText",
    "valueA": "optionAValue",
    "optionB": "optionBText",
    "valueB": "optionBValue",
}


def _local_name(tag: str) -> str:
    """Element or attribute name without its ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1]


def parse_yaml_document(content: str) -> dict[str, Any]:
    """Parse YAML text into a workflow document dictionary.

    Raises:
        WorkflowValidationError: If the text is not valid YAML or not a mapping
    """
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise WorkflowValidationError(f"Invalid YAML syntax: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise WorkflowValidationError(f"Workflow must be a YAML object, got {type(data).__name__}")
    return data


def parse_xml_document(content: str | bytes) -> dict[str, Any]:
    """Parse ``<workflow>`` XML into the same dictionary shape as YAML documents.

    Every ``<task>`` element below the root becomes one task; its attributes
    are copied as-is and ``<param name=".." value=".."/>`` children become
    its ``params``. ``optionA``/``valueA``/``optionB``/``valueB`` are read as
    the full ``optionAText``/``optionAValue``/... names.

    Raises:
        WorkflowValidationError: If the XML is malformed or the root is not ``<workflow>``
    """
    try:
        root = ET.fromstring(content.strip())
    except ET.ParseError as e:
        raise WorkflowValidationError(f"XML parse failed: {e}") from e

    root_name = _local_name(root.tag)
    if root_name != "workflow":
        raise WorkflowValidationError(f"Root must be <workflow>, but got: <{root_name}>")

    document: dict[str, Any] = {}
    for name, value in root.attrib.items():
        if _local_name(name) in ("id", "description", "start") and value.strip():
            document[_local_name(name)] = value

    tasks = []
    for element in root.iter():
        if element is root or _local_name(element.tag) != "task":
            continue

        task: dict[str, Any] = {_local_name(name): value for name, value in element.attrib.items()}
        # Full attribute names win over their short aliases
        for alias, full_name in XML_ATTRIBUTE_ALIASES.items():
            if alias in task:
                task.setdefault(full_name, task.pop(alias))
        params = {}
        for child in element:
            if _local_name(child.tag) == "param" and child.get("name"):
                params[child.get("name")] = child.get("value", "")
        if params:
            task["params"] = params
        tasks.append(task)

    document["tasks"] = tasks
    return document


def parse_document(content: str, file_format: str) -> dict[str, Any]:
    """Parse document text in the given format ("yaml" or "xml")."""
    if file_format == "yaml":
        return parse_yaml_document(content)
    if file_format == "xml":
        return parse_xml_document(content)
    raise ValueError(f"Unsupported workflow format: {file_format}")


def format_for_path(file_path: Path) -> str:
    """Document format implied by a file suffix."""
    suffix = file_path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        return "yaml"
    if suffix in XML_SUFFIXES:
        return "xml"
    raise ValueError(f"Unsupported workflow file type: {file_path}")


class DocumentLoader:
    """Workflow document loader with TTL-based caching."""

    def __init__(self, cache_ttl: int = 300, max_cache_size: int = 100):
        """Initialize the document loader.

        Args:
            cache_ttl: Time-to-live for cache entries in seconds
            max_cache_size: Maximum number of files to cache
        """
        self.cache_ttl = cache_ttl
        self.max_cache_size = max_cache_size
        self._cache: TTLCache[str, dict[str, Any]] = TTLCache(maxsize=max_cache_size, ttl=cache_ttl)
        self._lock = threading.RLock()

    def load_document(self, file_path: str | Path) -> dict[str, Any]:
        """Load and parse a workflow file with caching.

        Args:
            file_path: Path to a ``.yaml``, ``.yml`` or ``.xml`` file

        Returns:
            Parsed workflow document

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the path is not a file or has an unsupported suffix
            WorkflowValidationError: If parsing fails
        """
        abs_path = Path(file_path).expanduser().resolve()
        cache_key = str(abs_path)

        with self._lock:
            if cache_key in self._cache:
                cached_entry = self._cache[cache_key]
                if self._is_cache_valid(abs_path, cached_entry):
                    return cached_entry["content"]
                del self._cache[cache_key]

        content = self._load_and_parse_file(abs_path)

        with self._lock:
            stat = abs_path.stat()
            self._cache[cache_key] = {
                "content": content,
                "mtime": stat.st_mtime,
                "size": stat.st_size,
                "loaded_at": time.time(),
            }

        return content

    def _load_and_parse_file(self, abs_path: Path) -> dict[str, Any]:
        """Load and parse a workflow file from the filesystem."""
        if not abs_path.exists():
            raise FileNotFoundError(f"Workflow file not found: {abs_path}")

        if not abs_path.is_file():
            raise ValueError(f"Path is not a file: {abs_path}")

        file_format = format_for_path(abs_path)

        try:
            if file_format == "xml":
                return parse_xml_document(abs_path.read_bytes())
            return parse_yaml_document(abs_path.read_text(encoding="utf-8"))
        except UnicodeDecodeError as e:
            raise WorkflowValidationError(f"File encoding error in {abs_path}: {e}") from e
        except WorkflowValidationError as e:
            raise WorkflowValidationError(f"{abs_path}: {e}") from e

    def _is_cache_valid(self, abs_path: Path, cached_entry: dict[str, Any]) -> bool:
        """Check if cached entry is still valid."""
        try:
            if not abs_path.exists():
                return False

            stat = abs_path.stat()
            return stat.st_mtime == cached_entry["mtime"] and stat.st_size == cached_entry["size"]
        except (OSError, KeyError):
            return False

    def invalidate_cache(self, file_path: str | Path | None = None) -> int:
        """Invalidate cache entries.

        Args:
            file_path: Specific file to invalidate, or None to clear entire cache

        Returns:
            Number of cache entries invalidated
        """
        with self._lock:
            if file_path is None:
                count = len(self._cache)
                self._cache.clear()
                return count

            cache_key = str(Path(file_path).expanduser().resolve())
            if cache_key in self._cache:
                del self._cache[cache_key]
                return 1
            return 0

    def get_cache_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            current_time = time.time()
            ages = [current_time - entry.get("loaded_at", current_time) for entry in self._cache.values()]

            return {
                "cache_size": len(self._cache),
                "max_cache_size": self.max_cache_size,
                "cache_ttl": self.cache_ttl,
                "oldest_entry_age_seconds": max(ages) if ages else 0,
                "newest_entry_age_seconds": min(ages) if ages else 0,
            }


# Global singleton instance
_document_loader: DocumentLoader | None = None
_loader_lock = threading.Lock()


def get_document_loader() -> DocumentLoader:
    """Get the global document loader instance."""
    global _document_loader

    if _document_loader is None:
        with _loader_lock:
            if _document_loader is None:
                from .config import get_config

                config = get_config()
                _document_loader = DocumentLoader(
                    cache_ttl=config.document_cache_ttl,
                    max_cache_size=config.max_cached_documents,
                )

    return _document_loader


def reset_document_loader() -> None:
    """Reset the global document loader (for testing)."""
    global _document_loader
    with _loader_lock:
        _document_loader = None
