from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional, Literal, Union

Gender = Literal["male", "female"]
RelationType = Literal["parent-child", "spouse", "adopted"]
EventType = Literal["birth", "death", "marriage", "migration", "achievement", "residence", "other"]
PersonId = Union[int, str]

PARENT_TYPES = ("parent-child", "adopted")
RELATION_TYPES = ("parent-child", "spouse", "adopted")
EVENT_TYPES = ("birth", "death", "marriage", "migration", "achievement", "residence", "other")


class Person(BaseModel):
    """A person record as read from the store. Never mutated by the core."""
    model_config = ConfigDict(frozen=True)

    id: PersonId
    name: str
    gender: Gender = "male"
    generation: int = 1
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    birth_place: Optional[str] = None
    bio: Optional[str] = None
    is_starred: bool = False
    avatar_url: Optional[str] = None
    family_id: Optional[str] = None


class Relation(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: PersonId
    from_id: PersonId
    to_id: PersonId
    type: RelationType


class PersonCreate(BaseModel):
    name: str
    gender: Gender = "male"
    generation: int = 1
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    birth_place: Optional[str] = None
    bio: Optional[str] = None
    is_starred: bool = False
    avatar_url: Optional[str] = None
    family_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("generation")
    @classmethod
    def validate_generation(cls, v):
        if v < 1:
            raise ValueError("generation must be >= 1")
        return v


class PersonUpdate(BaseModel):
    name: Optional[str] = None
    gender: Optional[Gender] = None
    generation: Optional[int] = None
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    birth_place: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("name must not be empty")
        return v.strip() if v else v

    @field_validator("generation")
    @classmethod
    def validate_generation(cls, v):
        if v is not None and v < 1:
            raise ValueError("generation must be >= 1")
        return v


class PersonOut(BaseModel):
    id: str
    name: str
    gender: str
    generation: int
    birth_date: Optional[str] = None
    death_date: Optional[str] = None
    birth_place: Optional[str] = None
    bio: Optional[str] = None
    is_starred: bool = False
    avatar_url: Optional[str] = None
    family_id: Optional[str] = None


class RelationCreate(BaseModel):
    from_id: str
    to_id: str
    type: RelationType

    @field_validator("to_id")
    @classmethod
    def validate_to_id(cls, v, info):
        # a person cannot be related to themselves
        if v == info.data.get("from_id"):
            raise ValueError("from_id and to_id must differ")
        return v


class RelationOut(BaseModel):
    id: str
    from_id: str
    to_id: str
    type: str


class RelationSummaryOut(BaseModel):
    spouse_name: Optional[str] = None
    spouse_label: str = ""
    child_count: int = 0
    parent_descriptions: list[str] = []


class PersonRelationOut(BaseModel):
    relation_id: str
    other_id: str
    other_name: Optional[str] = None
    label: str


class FamilyCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class FamilyOut(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: str
    member_count: int = 0


class StatsOut(BaseModel):
    total: int
    max_generation: int
    male_count: int
    female_count: int
    starred_count: int
    spouse_count: int
    generation_distribution: dict[int, int]


class LineageOut(BaseModel):
    ancestors: list[str]
    descendants: list[str]


class EventCreate(BaseModel):
    person_id: str
    type: EventType = "other"
    title: str
    event_date: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("title must not be empty")
        return v


class EventUpdate(BaseModel):
    type: Optional[EventType] = None
    title: Optional[str] = None
    event_date: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError("title must not be empty")
        return v.strip() if v else v


class EventOut(BaseModel):
    id: str
    person_id: str
    type: str
    title: str
    event_date: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    created_at: str
