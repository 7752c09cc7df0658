from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Models import Base from here; career_advisor.db.models registers them all
