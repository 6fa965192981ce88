from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .base import Base, now_utc


class EavEntity(Base):
    __tablename__ = 'eav_entities'
    entity_id = Column(Integer, primary_key=True, autoincrement=True)
    entity_type = Column(String(50), nullable=False)
    name = Column(String(255), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    # Value rows are removed by the database (ON DELETE CASCADE).
    values = relationship(
        "EavValue",
        back_populates="entity",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index('idx_eav_entities_type_created', 'entity_type', 'created_at'),
    )


class EavAttribute(Base):
    __tablename__ = 'eav_attributes'
    attribute_id = Column(Integer, primary_key=True, autoincrement=True)
    attribute_name = Column(String(255), nullable=False)
    data_type = Column(String(20), nullable=False, default='string')
    description = Column(Text, nullable=True)

    values = relationship("EavValue", back_populates="attribute")

    __table_args__ = (
        UniqueConstraint('attribute_name', name='uq_eav_attributes_attribute_name'),
        CheckConstraint(
            "data_type in ('string','number','text','boolean','date')",
            name='ck_eav_attributes_data_type',
        ),
    )


class EavValue(Base):
    __tablename__ = 'eav_values'
    value_id = Column(Integer, primary_key=True, autoincrement=True)
    entity_id = Column(Integer, ForeignKey('eav_entities.entity_id', ondelete='CASCADE'), nullable=False)
    attribute_id = Column(Integer, ForeignKey('eav_attributes.attribute_id'), nullable=False)
    value_string = Column(String(255), nullable=True)
    value_number = Column(Float, nullable=True)
    value_text = Column(Text, nullable=True)
    value_boolean = Column(Boolean, nullable=True)
    value_date = Column(Date, nullable=True)

    entity = relationship("EavEntity", back_populates="values")
    attribute = relationship("EavAttribute", back_populates="values")

    __table_args__ = (
        UniqueConstraint('entity_id', 'attribute_id', name='uq_eav_values_entity_attribute'),
        Index('idx_eav_values_attribute_string', 'attribute_id', 'value_string'),
        Index('idx_eav_values_attribute_number', 'attribute_id', 'value_number'),
    )
