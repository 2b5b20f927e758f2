"""Data models for continuation control."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ContinuationState(BaseModel):
    """Automatic follow-up turns taken since the last human message."""

    model_config = ConfigDict(validate_assignment=True)

    attempt_count: int = Field(default=0, ge=0, description="Automatic turns taken")
    max_attempts: int = Field(default=5, ge=0, description="Hard cap on automatic turns")

    @model_validator(mode="after")
    def _within_cap(self) -> "ContinuationState":
        if self.attempt_count > self.max_attempts:
            raise ValueError(
                f"attempt_count {self.attempt_count} exceeds max_attempts {self.max_attempts}"
            )
        return self

    @property
    def remaining(self) -> int:
        return self.max_attempts - self.attempt_count

    @property
    def exhausted(self) -> bool:
        return self.attempt_count >= self.max_attempts
