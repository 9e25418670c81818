"""Task-flow MCP Server - interactive workflow runs over MCP."""

import logging
import sys

from fastmcp import FastMCP

from .active_runs import ActiveRunsManager, get_active_runs_manager
from .config import TaskflowConfig, get_config
from .tools import register_workflow_tools

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


class TaskflowServer:
    """Task-flow server with lifecycle management."""

    def __init__(self, config: TaskflowConfig | None = None):
        self.config = config or get_config()
        self.mcp = FastMCP(
            name=self.config.server_name,
            instructions="""
                Task-flow server runs data-driven workflows of small tasks
                (setVar, log, choice, branch, goto, effect, end):

                Core Tools:
                - start_workflow: Start a run from a YAML or XML workflow definition
                - submit_choice: Answer the two-option choice a run is waiting on
                - get_workflow_status: Inspect status, variables and messages of a run
                - list_workflows: List workflows that can be started by name

                Best Practices:
                - Define workflows in .taskflow/workflows/
                - When a run reports status "waiting", show its pending_choice to the user
                  and pass their pick to submit_choice
            """,
        )
        self.active_runs: ActiveRunsManager | None = None
        self._initialized = False

    def initialize(self):
        """Initialize server components and register tools."""
        if self._initialized:
            return

        logger.info(f"Initializing task-flow server: {self.config.server_name}")
        self.active_runs = get_active_runs_manager()

        logger.info("Registering workflow tools")
        register_workflow_tools(self.mcp)

        self._initialized = True
        logger.info(f"Task-flow server initialized successfully: {self.config.server_name}")

    def run(self):
        """Run the MCP server on the configured transport."""
        self.initialize()

        logger.info(f"Starting MCP server on {self.config.transport}")
        self.mcp.run(transport=self.config.transport)

    def shutdown(self):
        """Drop all active runs."""
        logger.info("Shutting down task-flow server")

        if self.active_runs:
            cleared = self.active_runs.clear()
            logger.info(f"Discarded {cleared} active runs")

        logger.info("Task-flow server shutdown complete")


def main():
    """Entry point for the task-flow server."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Load configuration from environment
    try:
        config = get_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if config.debug_mode else getattr(logging, config.log_level))

    logger.info(
        f"Starting task-flow server with configuration: "
        f"validation_mode={config.validation_mode}, transport={config.transport}"
    )

    server = TaskflowServer(config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        server.shutdown()
        sys.exit(0)
    except Exception as e:
        logger.error(f"Server failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
