from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Annotated, Any, Literal, Optional, Union
from datetime import datetime


class TabularConfig(BaseModel):
    type: Literal["tabular"] = "tabular"
    spreadsheet_id: str = Field(..., min_length=1, description="Spreadsheet identifier")
    worksheet_name: str = Field(..., min_length=1, description="Worksheet (tab) name")

    model_config = {"frozen": True}


class RelationalConfig(BaseModel):
    type: Literal["relational"] = "relational"
    base_url: str = Field(..., min_length=1, description="Project base URL, e.g. https://xyz.supabase.co")
    service_role_key: str = Field(..., min_length=1, description="Key sent as apikey and bearer token")
    table_name: str = Field(..., min_length=1)
    conflict_key: Optional[str] = Field(None, description="Column used for upserts")

    model_config = {"frozen": True}

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("conflict_key")
    @classmethod
    def blank_conflict_key_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


DestinationConfig = Annotated[
    Union[TabularConfig, RelationalConfig],
    Field(discriminator="type"),
]


def _inject_type(data: Any) -> Any:
    """Copy the outer ``type`` tag into ``config`` so the union can discriminate."""
    if isinstance(data, dict) and isinstance(data.get("config"), dict) and data.get("type"):
        config = dict(data["config"])
        config.setdefault("type", data["type"])
        data = {**data, "config": config}
    return data


class DestinationCreate(BaseModel):
    webhook_id: str
    type: Literal["tabular", "relational"]
    config: DestinationConfig
    enabled: bool = True

    @model_validator(mode="before")
    @classmethod
    def tag_config(cls, data: Any) -> Any:
        return _inject_type(data)

    @model_validator(mode="after")
    def type_matches_config(self):
        if self.config.type != self.type:
            raise ValueError("config does not match destination type")
        return self


class DestinationUpdate(BaseModel):
    enabled: Optional[bool] = None
    config: Optional[dict] = None


class DestinationResponse(BaseModel):
    id: str
    webhook_id: str
    type: str
    enabled: bool
    config: dict
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
