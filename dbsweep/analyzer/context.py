"""Per-run analysis context passed to every component."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .models import ModelNameResolver
from .syntax import enclosing_class_name


DEFAULT_MAX_CHAIN_DEPTH = 64


def fixed_model_name(name: str) -> ModelNameResolver:
    """Resolver that maps every self/this receiver to one table name."""
    def resolve(node) -> Optional[str]:
        return name
    return resolve


@dataclass
class AnalysisContext:
    """Collaborators and counters for one analysis run.

    Nothing here outlives the run; create a fresh context per invocation.
    """
    logger: Optional[Any] = None  # Anything exposing log_info/log_error
    model_name_resolver: ModelNameResolver = enclosing_class_name
    max_chain_depth: int = DEFAULT_MAX_CHAIN_DEPTH
    operation_counter: int = field(default=0)

    @classmethod
    def from_config(cls, config, logger=None) -> 'AnalysisContext':
        """Build a context from a Config instance."""
        resolver = enclosing_class_name
        if config.model_table_name:
            resolver = fixed_model_name(config.model_table_name)
        return cls(
            logger=logger,
            model_name_resolver=resolver,
            max_chain_depth=config.max_chain_depth,
        )

    def next_operation_id(self) -> int:
        self.operation_counter += 1
        return self.operation_counter

    def log_info(self, message: str, context: Optional[Dict[str, Any]] = None):
        if self.logger is not None:
            self.logger.log_info(message, context)

    def log_error(self, message: str, context: Optional[Dict[str, Any]] = None):
        if self.logger is not None:
            self.logger.log_error(message, context)
