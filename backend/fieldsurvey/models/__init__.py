"""All record-store database models.

Import all models here so Alembic and SQLAlchemy can discover them.
"""

from fieldsurvey.models.base import Base, BaseModel  # noqa: F401

# Survey records
from fieldsurvey.models.survey import SurveyDocument  # noqa: F401

# Photo blobs
from fieldsurvey.models.blob import StoredBlob  # noqa: F401
