"""
MCP Server Configuration Manager
Loads, creates and saves the JSON file that tells the client which MCP server to talk to
"""

import json
import logging
from pathlib import Path
from typing import Optional
from pydantic import ValidationError

from mcpdemo.config import settings
from mcpdemo.models.mcp import MCPConfig, MCPServerEntry, DEFAULT_SERVER_NAME

logger = logging.getLogger(__name__)

DOCUMENTATION_SERVER_PORT = 3000
DATABASE_SERVER_PORT = 3001
DATABASE_SERVER_SCRIPT = "database-server.js"


class MCPConfigurationError(Exception):
    """Raised when MCP configuration is invalid or cannot be loaded"""
    pass


def default_config() -> MCPConfig:
    """Configuration written on first run: the documentation demo server"""
    return MCPConfig(servers={
        DEFAULT_SERVER_NAME: MCPServerEntry(command="node", args=["server.js"])
    })


class MCPConfigManager:
    """
    Owns the MCP config file: loading (creating a default one if missing),
    saving, editing server entries and resolving their HTTP endpoints
    """

    def __init__(self, config_file_path: Optional[str] = None, host: Optional[str] = None):
        self.config_file_path = Path(config_file_path or settings.mcp_config_path)
        self.host = host or settings.mcp_host
        self.config: Optional[MCPConfig] = None

    def load(self) -> MCPConfig:
        """
        Load the configuration, writing the default one when the file does not exist

        Raises:
            MCPConfigurationError: If the file cannot be read or is invalid
        """
        if not self.config_file_path.exists():
            logger.info(f"MCP config file not found: {self.config_file_path}. Creating default configuration.")
            self.config = default_config()
            self.save(self.config)
            return self.config

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise MCPConfigurationError(f"Invalid JSON in config file {self.config_file_path}: {str(e)}")
        except OSError as e:
            raise MCPConfigurationError(f"Failed to load config file {self.config_file_path}: {str(e)}")

        try:
            self.config = MCPConfig.model_validate(data)
        except ValidationError as e:
            raise MCPConfigurationError(f"Invalid MCP configuration in {self.config_file_path}: {str(e)}")

        logger.info(f"Loaded {len(self.config.servers)} MCP server configurations from {self.config_file_path}")
        return self.config

    def save(self, config: Optional[MCPConfig] = None) -> None:
        """
        Write the configuration to disk

        Raises:
            MCPConfigurationError: If configuration cannot be saved
        """
        config = config or self.config
        if config is None:
            raise MCPConfigurationError("No configuration to save")

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(config.model_dump(exclude_none=True), f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise MCPConfigurationError(f"Failed to save config file {self.config_file_path}: {str(e)}")

        self.config = config
        logger.info(f"Saved {len(config.servers)} MCP server configurations to {self.config_file_path}")

    def _current(self) -> MCPConfig:
        return self.config if self.config is not None else self.load()

    def get_server(self, name: str = DEFAULT_SERVER_NAME) -> Optional[MCPServerEntry]:
        return self._current().servers.get(name)

    def add_server(self, name: str, entry: MCPServerEntry, replace: bool = False) -> None:
        """
        Add a server entry and save

        Raises:
            MCPConfigurationError: If the name exists and replace is False
        """
        if not name.strip():
            raise MCPConfigurationError("Server name cannot be empty")
        config = self._current().model_copy(deep=True)
        if name in config.servers and not replace:
            raise MCPConfigurationError(f"Server with name '{name}' already exists")
        config.servers[name] = entry
        self.save(config)

    def remove_server(self, name: str) -> None:
        config = self._current().model_copy(deep=True)
        if name not in config.servers:
            raise MCPConfigurationError(f"Server '{name}' not found")
        del config.servers[name]
        self.save(config)

    def resolve_endpoint(self, entry: MCPServerEntry) -> str:
        """HTTP endpoint of a server: explicit url, else the demo port picked from the command line"""
        if entry.url:
            return entry.url

        port = DOCUMENTATION_SERVER_PORT
        if DATABASE_SERVER_SCRIPT in entry.command_line():
            port = DATABASE_SERVER_PORT
        return f"http://{self.host}:{port}"

    def __repr__(self) -> str:
        return f"MCPConfigManager(config_file='{self.config_file_path}')"
