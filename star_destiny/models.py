from pydantic import BaseModel, ConfigDict, Field


class Enrichment(BaseModel):
    """Organizational identity supplied by an upstream provider (e.g. WeCom).

    Every field is optional; an absent enrichment never changes how a date
    is resolved or delivered, only what the payload's userName says.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str | None = None
    organization_units: list[str] = Field(
        default_factory=list, alias="organizationUnits"
    )
    role: str | None = None

    @property
    def is_empty(self) -> bool:
        return not (self.name or self.organization_units or self.role)


class UserRecord(BaseModel):
    """The latest resolved submission on this device.

    Stored as camelCase JSON, replaced wholesale on every new submission.
    """

    model_config = ConfigDict(populate_by_name=True)

    birth_date: str = Field(alias="birthDate", description="YYYY-MM-DD")
    constellation_id: int = Field(alias="constellationId", ge=0)
    timestamp: int = Field(description="Creation time in epoch milliseconds")
    name: str | None = None
    organization_units: list[str] | None = Field(
        default=None, alias="organizationUnits"
    )
    role: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
