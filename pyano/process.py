"""Starting and stopping a model server process."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
import subprocess
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from pyano.errors import ProcessError
from pyano.model_types import ModelConfig, ModelStatus

logger = logging.getLogger(__name__)


def default_server_binary() -> Path:
    return Path.home() / ".pyano" / "build" / "bin" / "llama-server"


def _force_kill(pid: int) -> None:
    try:
        os.kill(pid, getattr(signal, "SIGKILL", signal.SIGTERM))
    except OSError:
        pass


@dataclass
class ModelProcess:
    """One model server process and its state."""

    config: ModelConfig
    server_binary: Path = field(default_factory=default_server_binary)
    startup_wait: float = 10.0
    shutdown_wait: float = 5.0
    child: subprocess.Popen | None = None
    status: ModelStatus = field(default_factory=ModelStatus.stopped)
    last_used: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def build_command(self) -> list[str]:
        """The command line that starts the server for this model."""
        server = self.config.server_config
        command = [
            str(self.server_binary),
            "-m",
            str(self.config.model_path),
            "--ctx-size",
            str(server.ctx_size),
        ]
        if server.port is not None:
            command += ["--port", str(server.port)]
        if server.num_threads is not None:
            command += ["--threads", str(server.num_threads)]
        if server.gpu_layers > 0:
            command += ["--n-gpu-layers", str(server.gpu_layers)]
        if not server.use_mmap:
            command.append("--no-mmap")
        command += ["--batch-size", str(server.batch_size)]
        for key, value in server.extra_args.items():
            command += [f"--{key}", value]
        return command

    async def start(self) -> None:
        """Spawn the server and wait for it to come up; no-op if already running."""
        if self.status.is_running:
            return
        self.status = ModelStatus.loading()
        try:
            child = subprocess.Popen(self.build_command())
        except OSError as exc:
            self.status = ModelStatus.error(str(exc))
            raise ProcessError(str(exc)) from exc
        await asyncio.sleep(self.startup_wait)
        self.child = child
        self.status = ModelStatus.running()
        self.last_used = datetime.now(timezone.utc)

    async def stop(self) -> None:
        """Kill the server, if any, and mark the model stopped."""
        child, self.child = self.child, None
        if child is not None:
            try:
                child.kill()
            except OSError as exc:
                logger.error("Failed to kill process gracefully: %s", exc)
                _force_kill(child.pid)
            await asyncio.sleep(self.shutdown_wait)
            try:
                await asyncio.to_thread(child.wait, 1)
            except subprocess.TimeoutExpired:
                pass
            if child.poll() is None:
                _force_kill(child.pid)
        self.status = ModelStatus.stopped()