"""
Engine configuration models.

Policies are pydantic models so bad values fail at construction time;
``OrchestratorConfig`` (in ``orchestrator``) wires live objects and is a
plain dataclass.
"""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COMPACTION_INSTRUCTIONS = (
    "Summarize the conversation so far so it can continue without the full history. "
    "Keep every user goal, decision, constraint and open question, the results of tool "
    "calls that are still relevant, and anything you promised to do next. "
    "Respond with the summary only."
)


class CompactionConfig(BaseModel):
    """Compaction policy"""
    model_config = ConfigDict(validate_assignment=True)

    token_limit: int = Field(100_000, ge=1, description="Accumulated tokens that trigger compaction")
    instructions: str = Field(
        DEFAULT_COMPACTION_INSTRUCTIONS, min_length=1, description="Summarization request sent to the model"
    )


class AgentConfig(BaseModel):
    """Turn loop limits"""
    model_config = ConfigDict(validate_assignment=True)

    max_turns: int = Field(120, ge=1, description="Model calls allowed per request")
    max_consecutive_errors: int = Field(
        3, ge=1, description="All-error tool batches in a row before the model is told to stop"
    )
