"""Configuration management for the task-flow engine."""

import os
from dataclasses import dataclass


@dataclass
class TaskflowConfig:
    """Configuration class for the task-flow engine and its MCP server."""

    # MCP Server Configuration
    server_name: str = "taskflow-engine"
    transport: str = "stdio"

    # Workflow Configuration
    workflow_definitions_path: str = "./.taskflow/workflows/"
    validation_mode: str = "fail_fast"  # none | warn_only | fail_fast
    document_cache_ttl: int = 300  # seconds
    max_cached_documents: int = 100
    max_active_runs: int = 50

    # Runtime Configuration
    debug_mode: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls) -> "TaskflowConfig":
        """Create configuration from environment variables."""
        return cls(
            # Server Configuration
            server_name=os.getenv("TASKFLOW_SERVER_NAME", "taskflow-engine"),
            transport=os.getenv("TASKFLOW_TRANSPORT", "stdio"),

            # Workflow Configuration
            workflow_definitions_path=os.getenv("WORKFLOW_DEFINITIONS_PATH", "./.taskflow/workflows/"),
            validation_mode=os.getenv("TASKFLOW_VALIDATION_MODE", "fail_fast").lower(),
            document_cache_ttl=int(os.getenv("DOCUMENT_CACHE_TTL", "300")),
            max_cached_documents=int(os.getenv("MAX_CACHED_DOCUMENTS", "100")),
            max_active_runs=int(os.getenv("MAX_ACTIVE_RUNS", "50")),

            # Runtime Configuration
            debug_mode=os.getenv("DEBUG_MODE", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """Validate configuration settings."""
        errors = []

        if self.document_cache_ttl <= 0:
            errors.append("document_cache_ttl must be positive")

        if self.max_cached_documents <= 0:
            errors.append("max_cached_documents must be positive")

        if self.max_active_runs <= 0:
            errors.append("max_active_runs must be positive")

        if not self.workflow_definitions_path:
            errors.append("workflow_definitions_path cannot be empty")

        valid_validation_modes = ["none", "warn_only", "fail_fast"]
        if self.validation_mode not in valid_validation_modes:
            errors.append(f"validation_mode must be one of {valid_validation_modes}")

        valid_transports = ["stdio", "http", "sse"]
        if self.transport not in valid_transports:
            errors.append(f"transport must be one of {valid_transports}")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.log_level not in valid_log_levels:
            errors.append(f"log_level must be one of {valid_log_levels}")

        return len(errors) == 0, errors

    def __post_init__(self):
        """Post-initialization validation."""
        is_valid, errors = self.validate()
        if not is_valid:
            raise ValueError(f"Invalid configuration: {', '.join(errors)}")


# Global configuration instance
_config: TaskflowConfig | None = None


def get_config() -> TaskflowConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = TaskflowConfig.from_environment()
    return _config


def set_config(config: TaskflowConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
