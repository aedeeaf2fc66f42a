from sqlalchemy import Column, String, Text, DateTime, func
from database import Base


# Une ligne par clé du stockage local.
# La valeur est la chaîne JSON brute, exactement comme dans le localStorage du navigateur.
class StorageEntry(Base):
    __tablename__ = "local_storage"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
