from pydantic import BaseModel, ConfigDict, Field


# One crime entry as handed to the pattern analyzer.
# The loader has already turned the raw CSV time ("23:30", "23.30", "11:30 PM") into decimal hours.
class IncidentRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    crime_type: str = Field(..., description="Crime label as reported, e.g. THEFT")
    occurred_on_date: str = Field(..., description="Date of occurrence, DD-MM-YYYY")
    occurred_at_time: float = Field(
        ..., allow_inf_nan=False, description="Decimal hours, 1.5 = 1:30 AM"
    )
    severity: int = Field(1, ge=1, description="Carried through; not used by the analyzer")
