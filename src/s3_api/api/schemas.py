"""Request body models.

Field names follow the provider's PascalCase JSON; unknown fields are
tolerated and passed through where the workflow accepts them.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Tag(_RequestModel):
    key: str = Field(alias="Key", min_length=1)
    value: str = Field(default="", alias="Value")

    def to_provider(self) -> dict[str, str]:
        return {"Key": self.key, "Value": self.value}


class BucketInput(_RequestModel):
    bucket: str = Field(alias="Bucket", min_length=1)

    def create_args(self) -> dict[str, Any]:
        """Extra ``CreateBucket`` parameters supplied by the caller."""
        return dict(self.model_extra or {})


class _TaggedRequest(_RequestModel):
    tags: list[Tag] = Field(default_factory=list, alias="Tags")

    def provider_tags(self) -> list[dict[str, str]]:
        return [tag.to_provider() for tag in self.tags]


class BucketCreateRequest(_TaggedRequest):
    bucket_input: BucketInput = Field(alias="BucketInput")


class WebsiteCreateRequest(BucketCreateRequest):
    website_configuration: dict[str, Any] | None = Field(
        default=None, alias="WebsiteConfiguration"
    )


class TagsUpdateRequest(_TaggedRequest):
    pass


class WebsitePatchRequest(_RequestModel):
    cache_invalidation: list[str] = Field(default_factory=list, alias="CacheInvalidation")


class UserInput(_RequestModel):
    user_name: str = Field(alias="UserName", min_length=1)
    path: str | None = Field(default=None, alias="Path")


class UserCreateRequest(_RequestModel):
    user: UserInput = Field(alias="User")
    groups: list[str] = Field(default_factory=list, alias="Groups")
