"""Configuration — Pydantic models for conshell settings."""

from __future__ import annotations

import json
import os
import shlex
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ShellConfig(BaseModel):
    """Which child process to run and where."""

    command: str = Field(default="/bin/sh", description="Shell executable")
    args: list[str] = Field(
        default_factory=lambda: ["-i"],
        description="Arguments passed to the shell, e.g. to force interactive mode",
    )
    cwd: str | None = Field(default=None, description="Working directory")
    env: dict[str, str] = Field(
        default_factory=dict, description="Extra environment variables"
    )


class ConsoleConfig(BaseModel):
    """Top-level conshell configuration."""

    shell: ShellConfig = Field(default_factory=ShellConfig)
    history_size: int = Field(default=20, ge=1, description="Commands kept for recall")
    max_buffer_length: int = Field(
        default=8192, ge=1, description="Characters kept in the display buffer"
    )
    chunk_size: int = Field(default=128, ge=1, description="Bytes per output read")
    strip_ansi: bool = Field(
        default=False, description="Remove ANSI escape sequences from output"
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> ConsoleConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            CONSHELL_SHELL         - Shell executable
            CONSHELL_SHELL_ARGS    - Shell arguments (shell-quoted string)
            CONSHELL_HISTORY_SIZE  - History capacity
            CONSHELL_MAX_BUFFER    - Display buffer size in characters
            CONSHELL_CHUNK_SIZE    - Bytes per output read
        """
        load_dotenv()

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        shell = config_data.get("shell", {})

        env_shell = os.environ.get("CONSHELL_SHELL")
        if env_shell:
            shell["command"] = env_shell

        env_shell_args = os.environ.get("CONSHELL_SHELL_ARGS")
        if env_shell_args is not None:
            shell["args"] = shlex.split(env_shell_args)

        if shell:
            config_data["shell"] = shell

        env_history = os.environ.get("CONSHELL_HISTORY_SIZE")
        if env_history:
            config_data["history_size"] = int(env_history)

        env_max_buffer = os.environ.get("CONSHELL_MAX_BUFFER")
        if env_max_buffer:
            config_data["max_buffer_length"] = int(env_max_buffer)

        env_chunk_size = os.environ.get("CONSHELL_CHUNK_SIZE")
        if env_chunk_size:
            config_data["chunk_size"] = int(env_chunk_size)

        return cls.model_validate(config_data)
