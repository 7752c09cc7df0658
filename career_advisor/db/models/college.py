from sqlalchemy import Column, String, Float, Integer, Text, JSON
from career_advisor.db.base import Base


class College(Base):
    __tablename__ = "colleges"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False, index=True)
    short_name = Column(String)
    location = Column(String)
    city = Column(String)
    state = Column(String, index=True)
    type = Column(String)
    established = Column(Integer)
    website = Column(String)
    courses = Column(JSON, default=list)
    rating = Column(Float, default=0.0, index=True)
    fees = Column(String)
    acceptance_rate = Column(Float)
    description = Column(Text)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "shortName": self.short_name,
            "location": self.location,
            "city": self.city,
            "state": self.state,
            "type": self.type,
            "established": self.established,
            "website": self.website,
            "courses": self.courses or [],
            "rating": self.rating,
            "fees": self.fees,
            "acceptanceRate": self.acceptance_rate,
            "description": self.description,
        }
