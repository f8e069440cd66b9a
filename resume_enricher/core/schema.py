from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, Field, StrictInt, field_validator, model_validator

from resume_enricher.domain import RoleDraft


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class RoleInput(BaseModel):
    ordinal: StrictInt
    company_name: str = Field(min_length=1)
    company_size: str | None = None
    company_industry: str | None = None
    role_title: str = Field(min_length=1)
    role_industry: str | None = None
    role_seniority: str | None = None
    role_duration: int | None = Field(default=None, ge=0)
    role_description: str = Field(min_length=1)
    role_star_1: str | None = None
    role_star_2: str | None = None
    role_star_3: str | None = None
    metric_1: str | None = None
    metric_2: str | None = None
    metric_3: str | None = None

    @field_validator("company_name", "role_title", "role_description", mode="before")
    @classmethod
    def _strip_required(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator(
        "company_size",
        "company_industry",
        "role_industry",
        "role_seniority",
        "role_star_1",
        "role_star_2",
        "role_star_3",
        "metric_1",
        "metric_2",
        "metric_3",
        mode="before",
    )
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def to_draft(self) -> RoleDraft:
        return RoleDraft(**self.model_dump())


class IngestRequest(BaseModel):
    candidate_name: str | None = None
    job_link: str | None = None
    roles: list[RoleInput] = Field(min_length=1)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_parsed_resume(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "parsed_resume" not in data:
            return data
        parsed = data.get("parsed_resume")
        merged = {key: value for key, value in data.items() if key != "parsed_resume"}
        if isinstance(parsed, dict):
            merged.setdefault("roles", parsed.get("roles"))
            if not _blank_to_none(merged.get("candidate_name")):
                merged["candidate_name"] = parsed.get("candidate_name")
        return merged

    @field_validator("candidate_name", "job_link", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> Any:
        return _blank_to_none(value)

    @field_validator("job_link")
    @classmethod
    def _http_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        parsed = urlparse(value)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("job_link must be a valid http(s) URL")
        return value

    @model_validator(mode="after")
    def _unique_ordinals(self) -> "IngestRequest":
        ordinals = [role.ordinal for role in self.roles]
        if len(set(ordinals)) != len(ordinals):
            raise ValueError("role ordinals must be unique")
        return self

    def role_drafts(self) -> list[RoleDraft]:
        return [role.to_draft() for role in sorted(self.roles, key=lambda role: role.ordinal)]
