from pydantic import BaseModel, Field, computed_field


class BulkItemResult(BaseModel):
    id: str
    ok: bool
    error: str | None = None


class BulkResult(BaseModel):
    action: str
    attempted: int = 0
    succeeded: int = 0
    items: list[BulkItemResult] = Field(default_factory=list)
    activated_owners: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @computed_field
    @property
    def message(self) -> str:
        """One aggregate line for the whole batch, as shown to the reviewer."""
        verb = {"approve": "approved", "reject": "rejected", "delete": "deleted"}.get(
            self.action, self.action
        )
        if self.succeeded == self.attempted:
            return f"{self.succeeded} documents {verb}"
        if self.succeeded == 0:
            return f"Failed to {self.action} documents"
        return f"{self.succeeded} of {self.attempted} documents {verb}"
