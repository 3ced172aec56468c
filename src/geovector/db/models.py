# src/geovector/db/models.py

import datetime
import json
from typing import Any, Dict, Mapping

import pandas as pd
from sqlalchemy import (
    Column, Integer, BigInteger, Float, Boolean, Text, String, DateTime, LargeBinary, Index, MetaData, Table
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

Base = declarative_base()

ATTRIBUTE_TABLE = "attributes"
# dBase field names start with a letter, so this never collides with one
ROW_ID_COLUMN = "_row_id"

class JSONText(TypeDecorator):
    """
    Stores an attribute mapping as ordered JSON text. Key order survives the
    round trip since json preserves insertion order.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Dict[str, Any], dialect: Any) -> Any:
        """
        Serializes the attribute mapping during insertion.

        Args:
            value (Dict[str, Any]): Plain attribute mapping.
            dialect (Any): The active SQLAlchemy execution dialect.

        Returns:
            Any: JSON text, or None.
        """
        if value is None:
            return value
        return json.dumps(value)

    def process_result_value(self, value: Any, dialect: Any) -> Dict[str, Any]:
        """
        Parses JSON text back into a dictionary during retrieval.

        Args:
            value (Any): The raw text retrieved from the database.
            dialect (Any): The active SQLAlchemy execution dialect.

        Returns:
            Dict[str, Any]: The parsed attribute mapping.
        """
        if value is None:
            return None
        return json.loads(value)

class SourceInfo(Base):
    """
    Describes the shapefile a database was built from and the codec version
    used for its geometry blobs.
    """
    __tablename__ = 'source_info'

    id = Column(Integer, primary_key=True, autoincrement=True)
    source_path = Column(String(1024), nullable=False)
    format_version = Column(Integer, nullable=False)
    feature_count = Column(Integer, nullable=False)
    built_at = Column(DateTime(timezone=True), default=lambda: datetime.datetime.now(datetime.timezone.utc))

class VectorRecord(Base):
    """
    One shapefile record: its bounding box, attributes and encoded geometry.
    """
    __tablename__ = 'records'

    row_id = Column(Integer, primary_key=True, autoincrement=False)
    min_x = Column(Float, nullable=False)
    min_y = Column(Float, nullable=False)
    max_x = Column(Float, nullable=False)
    max_y = Column(Float, nullable=False)
    attributes = Column(JSONText, nullable=False)
    geometry = Column(LargeBinary, nullable=False)

    __table_args__ = (
        Index('ix_records_bbox', 'min_x', 'min_y', 'max_x', 'max_y'),
    )

def column_type(dtype: Any) -> Any:
    """
    Maps a pandas dtype to the SQL type of its attribute column.
    """
    if pd.api.types.is_bool_dtype(dtype):
        return Boolean
    if pd.api.types.is_integer_dtype(dtype):
        return BigInteger
    if pd.api.types.is_float_dtype(dtype):
        return Float
    return Text

def build_attribute_table(metadata: MetaData, fields: Mapping[str, Any]) -> Table:
    """
    Declares the flat attribute table: one typed column per shapefile field,
    keyed by the record row id so SQL predicates run against plain columns.

    Args:
        metadata (MetaData): Metadata collection the table is attached to.
        fields (Mapping[str, Any]): Field name to pandas dtype, in column order.

    Returns:
        Table: The table definition. Not yet created.
    """
    columns = [Column(ROW_ID_COLUMN, Integer, primary_key=True, autoincrement=False)]
    columns.extend(Column(name, column_type(dtype)) for name, dtype in fields.items())
    return Table(ATTRIBUTE_TABLE, metadata, *columns)
