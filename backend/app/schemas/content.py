from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic.alias_generators import to_camel

# Optional card attributes that are only written when the body carries them
CARD_DETAIL_FIELDS = (
    "card_category",
    "duration",
    "location",
    "intake",
    "requirements",
    "link",
    "is_active",
)


class _ContentBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StudyPageWrite(_ContentBody):
    title: str | None = Field(None, max_length=300)
    slug: str | None = Field(None, max_length=200)
    description: str | None = None
    banner_url: str | None = Field(None, max_length=1000)
    seo_title: str | None = Field(None, max_length=300)
    seo_description: str | None = None
    is_active: bool | None = None


class StudyPageToggle(_ContentBody):
    is_active: StrictBool | None = None


class CategoryWrite(_ContentBody):
    title: str | None = Field(None, max_length=300)
    description: str | None = None
    study_page_id: int | None = None


class CardWrite(_ContentBody):
    title: str | None = Field(None, max_length=500)
    description: str | None = None
    image_url: str | None = Field(None, max_length=1000)
    category_id: int | None = None
    card_category: str | None = Field(None, max_length=200)
    duration: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=300)
    intake: str | None = Field(None, max_length=200)
    requirements: str | None = None
    link: str | None = Field(None, max_length=1000)
    is_active: bool | None = None

    def details(self) -> dict:
        """The optional attributes present in the request body."""
        fields = {
            name: getattr(self, name)
            for name in CARD_DETAIL_FIELDS
            if name in self.model_fields_set
        }
        if fields.get("is_active", True) is None:
            del fields["is_active"]
        return fields
