"""Variable store and ``${name}`` interpolation for workflow tasks."""

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping

# ${name}: any run of characters up to the closing brace
VARIABLE_PATTERN = re.compile(r"\$\{([^}]*)\}")


class VariableStore(ABC):
    """String-keyed, string-valued state shared by one run (or a sequence of runs)."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key was never set."""

    @abstractmethod
    def put(self, key: str, value: str | None) -> None:
        """Store a value; None is stored as the empty string."""

    @abstractmethod
    def snapshot(self) -> dict[str, str]:
        """Return an insertion-ordered copy of the current contents."""

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None


class MapVariableStore(VariableStore):
    """In-memory store; nothing survives the process."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._variables: dict[str, str] = {}
        if initial:
            for key, value in initial.items():
                self.put(key, value)

    def get(self, key: str) -> str | None:
        return self._variables.get(key)

    def put(self, key: str, value: str | None) -> None:
        if key is None or not str(key).strip():
            raise ValueError("Variable key must not be blank")
        self._variables[key] = "" if value is None else str(value)

    def snapshot(self) -> dict[str, str]:
        return dict(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"MapVariableStore({self._variables!r})"


class VariableReplacer:
    """Handles ``${name}`` interpolation in task attributes."""

    @staticmethod
    def replace(attributes: Mapping[str, str | None], store: VariableStore) -> dict[str, str]:
        """Interpolate every value of a mapping against one snapshot of the store.

        Args:
            attributes: Attribute values that may contain variables
            store: Store to read values from

        Returns:
            New mapping with variables replaced
        """
        snapshot = store.snapshot()
        return {name: VariableReplacer.replace_string(value, snapshot) for name, value in attributes.items()}

    @staticmethod
    def replace_string(text: str | None, snapshot: Mapping[str, str]) -> str:
        """Replace each ``${name}`` with its value in ``snapshot``; unset names become empty.

        A single pass over ``text``: substituted values are never scanned again,
        so a value that itself looks like ``${other}`` is kept literally.
        """
        if text is None:
            return ""

        def replace_match(match):
            return snapshot.get(match.group(1), "")

        return VARIABLE_PATTERN.sub(replace_match, text)


def interpolate(text: str | None, store: VariableStore) -> str:
    """Interpolate ``text`` against the current contents of ``store``."""
    return VariableReplacer.replace_string(text, store.snapshot())
