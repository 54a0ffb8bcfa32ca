"""
Runtime bootstrapper for the tree-sitter engine.

Boots the parsing engine exactly once per context. Concurrent callers attach
to the in-flight boot instead of starting a second one. A failed boot
returns the runtime to UNINITIALIZED so that a later call can try again;
transient import errors are additionally retried inside a single boot.
"""

import asyncio
import importlib
import logging
from concurrent.futures import Executor
from typing import Any, Optional

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..core.exceptions import BootFailure
from ..core.models import RuntimeState
from ..utils.parsing_config import ParsingConfig
from ..utils.singleflight import Singleflight

logger = logging.getLogger(__name__)

# Attributes every engine module must provide
REQUIRED_ENGINE_ATTRIBUTES = ("Parser", "Language")


class RuntimeBootstrapper:
    """Owns the boot state of the parsing engine."""

    BOOT_KEY = "engine"

    def __init__(self, config: ParsingConfig, executor: Optional[Executor] = None):
        self.config = config
        self._executor = executor
        self._state = RuntimeState.UNINITIALIZED
        self._engine: Optional[Any] = None
        self._flight = Singleflight("boot")

        self.stats = {
            "boot_operations": 0,
            "boot_attempts": 0,
            "boot_failures": 0,
        }

    @property
    def state(self) -> RuntimeState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is RuntimeState.READY

    @property
    def engine(self) -> Any:
        """The booted engine module; raises BootFailure before READY."""
        if self._state is not RuntimeState.READY:
            raise BootFailure(
                f"Parsing engine is not ready (state: {self._state.value})",
                engine_module=self.config.engine_module,
            )
        return self._engine

    async def init_parser(self) -> None:
        """
        Boot the parsing engine if it is not booted yet.

        Safe to call any number of times and from concurrent tasks: only one
        boot operation runs at a time and every caller waits for it.

        Raises:
            BootFailure: If the engine module could not be loaded
        """
        if self._state is RuntimeState.READY:
            return
        await self._flight.do(self.BOOT_KEY, self._boot)

    async def _boot(self) -> None:
        module_name = self.config.engine_module
        self._state = RuntimeState.INITIALIZING
        self.stats["boot_operations"] += 1
        logger.info(f"Booting parsing engine '{module_name}'...")

        loop = asyncio.get_running_loop()
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.boot_retry_attempts),
                wait=wait_exponential(multiplier=self.config.boot_retry_wait, max=10),
                retry=retry_if_exception_type((ImportError, OSError)),
                reraise=True,
            ):
                with attempt:
                    self.stats["boot_attempts"] += 1
                    engine = await loop.run_in_executor(
                        self._executor, self._import_engine, module_name
                    )
        except BootFailure:
            self.stats["boot_failures"] += 1
            raise
        except Exception as e:
            self.stats["boot_failures"] += 1
            logger.error(f"Failed to boot parsing engine '{module_name}': {e}")
            raise BootFailure(
                f"Could not load parsing engine '{module_name}': {e}",
                engine_module=module_name,
            ) from e
        else:
            self._engine = engine
            self._state = RuntimeState.READY
        finally:
            # Failed or cancelled boots leave the runtime retryable
            if self._state is RuntimeState.INITIALIZING:
                self._state = RuntimeState.UNINITIALIZED

        logger.info(
            f"Parsing engine '{module_name}' ready "
            f"(language ABI {getattr(engine, 'LANGUAGE_VERSION', 'unknown')})"
        )

    def _import_engine(self, module_name: str) -> Any:
        """Import the engine module and check its shape. Runs in the executor."""
        engine = importlib.import_module(module_name)

        missing = [
            name for name in REQUIRED_ENGINE_ATTRIBUTES if not hasattr(engine, name)
        ]
        if missing:
            raise BootFailure(
                f"Engine module '{module_name}' does not provide {', '.join(missing)}",
                engine_module=module_name,
            )
        return engine
