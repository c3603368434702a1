"""
Database Schemas for Property Listings

Each Pydantic model represents a collection in MongoDB.
Model name lowercased is the collection name.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class Location(BaseModel):
    street: str = Field(..., description="Street address")
    city: str = Field(..., description="City")
    state: str = Field(..., description="State")
    zipcode: str = Field(..., description="Postal code")


class Rates(BaseModel):
    # None means the rate is not offered, which is different from 0
    nightly: Optional[float] = Field(None, description="Nightly rate")
    weekly: Optional[float] = Field(None, description="Weekly rate")
    monthly: Optional[float] = Field(None, description="Monthly rate")


class SellerInfo(BaseModel):
    name: str = Field(..., description="Contact name")
    email: str = Field(..., description="Contact email")
    phone: str = Field(..., description="Contact phone")


class PropertySubmission(BaseModel):
    """
    Typed form of an add-property submission, before images are uploaded
    and before an owner is attached.
    """
    name: str = Field(..., description="Listing title")
    type: str = Field(..., description="Property type, e.g. Apartment, Cabin")
    description: str = Field(..., description="Free text description")
    location: Location
    beds: float = Field(..., description="Number of beds")
    baths: float = Field(..., description="Number of baths")
    square_feet: float = Field(..., description="Floor area")
    amenities: List[str] = Field(default_factory=list, description="Amenity tags")
    rates: Rates = Field(default_factory=Rates)
    seller_info: SellerInfo


class Property(PropertySubmission):
    """
    Collection name: "property"
    One listing, owned by the user who submitted it
    """
    owner: str = Field(..., description="Id of the owning user")
    images: List[str] = Field(default_factory=list, description="Hosted image URLs in submission order")
