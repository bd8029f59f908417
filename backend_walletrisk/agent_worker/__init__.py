"""
Agent worker: single-address scoring pipeline and bounded batch scheduler.
"""

from backend_walletrisk.agent_worker.batch import BatchScheduler
from backend_walletrisk.agent_worker.pipeline import ScoringPipeline, synthetic_history

__all__ = ["BatchScheduler", "ScoringPipeline", "synthetic_history"]
