from typing import Dict

from pydantic import BaseModel, ConfigDict, Field, computed_field


class MergeReport(BaseModel):
    """Size statistics for one merge run.

    Attributes:
        input1_len: Lines read from the first input.
        input2_len: Lines read from the second input.
        merged_len: Lines in the final, deduplicated result.
        timings_ms: Wall time per pipeline stage, keyed by stage name.
    """

    model_config = ConfigDict(frozen=True)

    input1_len: int
    input2_len: int
    merged_len: int
    timings_ms: Dict[str, int] = Field(default_factory=dict)

    @computed_field
    @property
    def best_case(self) -> int:
        return max(self.input1_len, self.input2_len)

    @computed_field
    @property
    def worst_case(self) -> int:
        return self.input1_len + self.input2_len
