"""Flow documentation generator for Python source trees."""

from .extract import extract_flow_dsl
from .orchestrator import Orchestrator, RunSummary

__all__ = ["Orchestrator", "RunSummary", "extract_flow_dsl"]
