from pydantic import BaseModel


class ErrorInfo(BaseModel):
    code: str
    message: str
    entry_id: str | None = None
    retryable: bool = False
    suggested_fix: str | None = None  # Human-readable fix suggestion
