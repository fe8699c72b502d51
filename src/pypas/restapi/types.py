"""Raw API response types for the PAS REST API.

Pydantic models mirroring the JSON returned by the vendor API. Field names
follow the wire format through aliases; Python code uses the snake_case names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class APIModel(BaseModel):
    """Base for wire models: accept both alias and field name, ignore extras."""

    model_config = ConfigDict(populate_by_name=True)


class APIErrorBody(APIModel):
    """Body of an error response. ``null`` fields read as empty."""

    error_code: str = Field("", alias="ErrorCode")
    error_message: str = Field("", alias="ErrorMessage")
    details: str = Field("", alias="Details")

    @field_validator("error_code", "error_message", "details", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class LogonResult(APIModel):
    """Successful logon response. Some versions return a bare string instead."""

    token: str = Field("", alias="CyberArkLogonResult")

    @field_validator("token", mode="before")
    @classmethod
    def null_as_empty(cls, value: Any) -> Any:
        return "" if value is None else value


class ServerInfo(APIModel):
    """Server information from the PIMServices ``Server`` endpoint."""

    server_id: str = Field("", alias="ServerID")
    server_name: str = Field("", alias="ServerName")
    services_used: str = Field("", alias="ServicesUsed")
    applications_used: str = Field("", alias="ApplicationsUsed")
    internal_version: float = Field(0.0, alias="InternalVersion")
    external_version: str = Field("", alias="ExternalVersion")


class ComponentHealth(APIModel):
    """Summary health of one vault component."""

    component_id: str = Field("", alias="ComponentID")
    component_name: str = Field("", alias="ComponentName")
    description: str = Field("", alias="Description")
    connected_component_id: str = Field("", alias="ConnectedComponentID")
    is_logged_on: bool = Field(False, alias="IsLoggedOn")
    last_logon_date: int = Field(0, alias="LastLogonDate")


class ComponentsSummary(APIModel):
    """Envelope of the ``ComponentsMonitoringSummary`` endpoint."""

    components: list[ComponentHealth] = Field(default_factory=list, alias="Components")
