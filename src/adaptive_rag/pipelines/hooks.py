"""
Pipeline Hook System

Before/after callbacks around augmentation stages (decide, retrieve,
assess, web_search). Used by the performance monitor and available for
custom tracing without touching pipeline code.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

logger = logging.getLogger("adaptive_rag.hooks")

WILDCARD = "*"


class PipelineHookManager:
    """
    Registry of async hooks keyed by stage name.

    Stage-specific hooks receive the shared context dict; wildcard ("*")
    hooks receive (stage, context). A failing hook is logged and skipped,
    it never aborts the pipeline.

    Example:
        >>> hooks = PipelineHookManager()
        >>>
        >>> @hooks.after("web_search")
        >>> async def count_results(context):
        >>>     print(len(context["web_documents"]))
    """

    def __init__(self):
        self.before_hooks: Dict[str, List[Callable]] = {}
        self.after_hooks: Dict[str, List[Callable]] = {}

    def register_before(self, stage: str, hook: Callable) -> None:
        self.before_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered before hook for stage: {stage}")

    def register_after(self, stage: str, hook: Callable) -> None:
        self.after_hooks.setdefault(stage, []).append(hook)
        logger.debug(f"Registered after hook for stage: {stage}")

    def before(self, stage: str):
        """Decorator form of register_before()."""
        def decorator(func: Callable) -> Callable:
            self.register_before(stage, func)
            return func
        return decorator

    def after(self, stage: str):
        """Decorator form of register_after()."""
        def decorator(func: Callable) -> Callable:
            self.register_after(stage, func)
            return func
        return decorator

    async def _run(self, hooks: List[Callable], stage: str, context: Dict[str, Any], wildcard: bool) -> None:
        for hook in hooks:
            try:
                if wildcard:
                    await hook(stage, context)
                else:
                    await hook(context)
            except Exception as e:
                logger.error(f"Hook failed for stage '{stage}': {e}", exc_info=True)

    async def execute_before(self, stage: str, context: Dict[str, Any]) -> None:
        """Run before hooks. Wildcard hooks run first."""
        await self._run(self.before_hooks.get(WILDCARD, []), stage, context, wildcard=True)
        await self._run(self.before_hooks.get(stage, []), stage, context, wildcard=False)

    async def execute_after(self, stage: str, context: Dict[str, Any]) -> None:
        """Run after hooks. Wildcard hooks run last."""
        await self._run(self.after_hooks.get(stage, []), stage, context, wildcard=False)
        await self._run(self.after_hooks.get(WILDCARD, []), stage, context, wildcard=True)

    @asynccontextmanager
    async def stage(self, name: str, context: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        """
        Wrap a block with before/after hooks.

        After hooks only run when the block completes; an exception
        inside the block propagates untouched.
        """
        await self.execute_before(name, context)
        yield context
        await self.execute_after(name, context)

    def clear_hooks(self, stage: Optional[str] = None) -> None:
        if stage:
            self.before_hooks.pop(stage, None)
            self.after_hooks.pop(stage, None)
        else:
            self.before_hooks.clear()
            self.after_hooks.clear()

    def get_hook_count(self, stage: Optional[str] = None) -> Dict[str, int]:
        if stage:
            return {
                "before": len(self.before_hooks.get(stage, [])),
                "after": len(self.after_hooks.get(stage, [])),
            }
        total_before = sum(len(hooks) for hooks in self.before_hooks.values())
        total_after = sum(len(hooks) for hooks in self.after_hooks.values())
        return {
            "before": total_before,
            "after": total_after,
            "total": total_before + total_after,
        }
