"""
Data Models for API Client Module
===================================

Pydantic models for the users, flows and organizations returned by the
Flowdock REST API, and the shared base used by the stream event models.
"""

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FlowdockModel(BaseModel):
    """Base for immutable wire records.

    Unknown fields are ignored and JSON nulls fall back to the field default,
    since the API sends ``null`` for unset avatars, emails and timestamps.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class User(FlowdockModel):
    """User resource as seen by GET /users."""

    id: int = 0
    name: str = ""
    nick: str = ""
    avatar_url: str = Field("", alias="avatar")
    status: str = ""
    last_activity: int = 0
    last_ping: int = 0
    email: str = ""


class Organization(FlowdockModel):
    """Organization resource as seen by GET /organizations."""

    id: int = 0
    api_name: str = Field("", alias="parameterized_name")
    name: str = ""
    api_url: str = Field("", alias="url")
    users: List[User] = Field(default_factory=list)


class Flow(FlowdockModel):
    """Flow resource as seen by GET /flows."""

    id: str = ""
    api_url: str = Field("", alias="url")
    web_url: str = ""
    name: str = ""
    api_name: str = Field("", alias="parameterized_name")
    organization: Organization = Field(default_factory=Organization)

    @property
    def filter_token(self) -> str:
        """The ``org/flow`` pair used in the stream filter."""
        return f"{self.organization.api_name}/{self.api_name}"
