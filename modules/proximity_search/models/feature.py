"""Feature Data Models

This module defines the Pydantic data models for features and their schema.
A feature is an identifiable record whose designated geometry attribute is a
shapely geometry; every other attribute is carried through untouched.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FeatureSchema(BaseModel):
    """Schema shared by all features of one collection.

    Attributes:
        name: Type name of the collection (layer or table name)
        geometry_property: Attribute holding the default geometry, or None
        fields: Attribute names in declaration order (geometry included)
        crs: Coordinate reference system of the stored geometries
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Feature type name")
    geometry_property: Optional[str] = Field(
        "geometry", description="Name of the default geometry attribute"
    )
    fields: List[str] = Field(default_factory=list, description="Attribute names")
    crs: str = Field("EPSG:4326", description="CRS of the stored geometries")

    @field_validator('geometry_property')
    @classmethod
    def validate_geometry_property(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty geometry property name as absent."""
        if v is not None and not v.strip():
            return None
        return v

    def has_geometry(self) -> bool:
        return self.geometry_property is not None


class Feature(BaseModel):
    """Immutable feature record.

    Attributes:
        feature_id: Identifier unique within the owning collection
        feature_schema: Schema of the owning collection
        attributes: Attribute values keyed by name, including the geometry
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    feature_id: str = Field(..., description="Feature identifier")
    feature_schema: FeatureSchema = Field(..., alias="schema", description="Owning schema")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Attribute values")

    @property
    def geometry(self) -> Optional[Any]:
        """Default geometry, or None if the schema or the record has none."""
        if not self.feature_schema.has_geometry():
            return None
        return self.attributes.get(self.feature_schema.geometry_property)

    def get(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)

    def __hash__(self) -> int:
        return hash(self.feature_id)
