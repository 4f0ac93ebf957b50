# core/base_agent.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  HR Retention — Base Agent                                                ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Abstract Base Agent Class                                             ║
║  ✓ Lifecycle Hooks (validate → before → execute → after)                 ║
║  ✓ Standard AgentResult Format                                           ║
║  ✓ Structured Logging                                                    ║
╚════════════════════════════════════════════════════════════════════════════╝

Every pipeline stage (loader, encoder, missingness analyzer, imputer,
normalizer, model trainer) is an agent. Stages are sequential and never
retried: a failure is logged with its context and re-raised to the caller.

Lifecycle:
```
    run() → validate_input()
          → before_execute()
          → execute()
          → measure time
          → after_execute()
          → return AgentResult
```

Usage:
```python
    class MyAgent(BaseAgent):
        def __init__(self):
            super().__init__(name="MyAgent", description="Example")

        def execute(self, data, **kwargs) -> AgentResult:
            result = AgentResult(agent_name=self.name)
            result.add_data(data=data.copy())
            return result

    result = MyAgent().run(data=df)
```

Dependencies:
    • loguru
    • pydantic
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from core.exceptions import HRRetentionException

__all__ = ["BaseAgent", "AgentResult", "AgentStatus"]


AgentStatus = Literal["success", "failed", "partial"]


# ═══════════════════════════════════════════════════════════════════════════
# Agent Result
# ═══════════════════════════════════════════════════════════════════════════

class AgentResult(BaseModel):
    """
    📊 **Agent Execution Result**

    Attributes:
        agent_name: Name of the agent
        status: success / failed / partial (partial = completed with warnings)
        execution_time: Duration in seconds
        trace_id: Unique trace identifier
        data: Result payload (tables, reports, models)
        metadata: Additional metadata (row counts, parameters)
        errors: Error messages
        warnings: Warning messages
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    agent_name: str
    status: AgentStatus = Field(default="success")

    execution_time: float = Field(default=0.0)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    trace_id: str = Field(default_factory=lambda: uuid4().hex)

    data: Dict[str, Any] = Field(default_factory=dict)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    def is_success(self) -> bool:
        return self.status == "success"

    def is_failed(self) -> bool:
        return self.status == "failed"

    def is_partial(self) -> bool:
        return self.status == "partial"

    def add_error(self, error: str) -> None:
        """Add error and mark as failed."""
        self.errors.append(error)
        self.status = "failed"

    def add_warning(self, warning: str) -> None:
        """Add warning and mark as partial if success."""
        self.warnings.append(warning)
        if self.status == "success":
            self.status = "partial"

    def add_data(self, **items: Any) -> None:
        self.data.update(items)

    def add_metadata(self, **items: Any) -> None:
        self.metadata.update(items)


# ═══════════════════════════════════════════════════════════════════════════
# Base Agent
# ═══════════════════════════════════════════════════════════════════════════

class BaseAgent(ABC):
    """
    🤖 **Base Agent Class**

    Subclasses implement `execute()`; callers use `run()`.
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        version: str = "1.0"
    ):
        self.name = name
        self.description = description
        self.version = version

        self.logger = logger.bind(
            agent=name,
            component="agent",
            version=version
        )

        self._result: Optional[AgentResult] = None

    @abstractmethod
    def execute(self, **kwargs) -> AgentResult:
        """Execute agent logic. Must be implemented by subclasses."""
        raise NotImplementedError

    # ───────────────────────────────────────────────────────────────────
    # Lifecycle Hooks
    # ───────────────────────────────────────────────────────────────────

    def validate_input(self, **kwargs) -> bool:
        """
        Validate input before execution.

        Raises:
            HRRetentionException subclass or TypeError if validation fails
        """
        return True

    def before_execute(self, **kwargs) -> None:
        self.logger.debug(f"[{self.name}] Starting execution")

    def after_execute(self, result: AgentResult) -> None:
        self.logger.info(
            f"[{self.name}] Execution completed: "
            f"status={result.status}, time={result.execution_time:.3f}s"
        )
        for warning in result.warnings:
            self.logger.warning(f"[{self.name}] {warning}")

    # ───────────────────────────────────────────────────────────────────
    # Main Execution
    # ───────────────────────────────────────────────────────────────────

    def run(self, **kwargs) -> AgentResult:
        """
        🚀 **Execute Agent**

        Returns:
            AgentResult

        Raises:
            Whatever `validate_input` or `execute` raised, after logging it.
        """
        start_perf = time.perf_counter()
        started_at = datetime.now()

        try:
            self.validate_input(**kwargs)
            self.before_execute(**kwargs)

            result = self.execute(**kwargs)

            if not isinstance(result, AgentResult):
                raise TypeError(
                    f"Invalid result type returned by {self.name}: "
                    f"expected AgentResult, got {type(result).__name__}"
                )
        except HRRetentionException as e:
            self.logger.error(f"[{self.name}] Execution failed: {e}")
            raise
        except Exception as e:
            self.logger.exception(f"[{self.name}] Execution failed: {type(e).__name__}: {e}")
            raise

        result.execution_time = time.perf_counter() - start_perf
        result.started_at = started_at
        result.finished_at = datetime.now()

        self._result = result
        self.after_execute(result)

        return result

    def get_last_result(self) -> Optional[AgentResult]:
        """Get last execution result."""
        return self._result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', version='{self.version}')"
