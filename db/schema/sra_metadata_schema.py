"""
This module defines the schema for storing SRA study metadata in PostgreSQL.

Overview:
    - Every Analysis points at exactly one Study (the Study side is not mapped).
    - Analyses reference the Samples they were computed from (many-to-many).
    - Samples carry a BioSample cross-reference and their Taxonomy associations.
    - Taxonomies form a lineage tree through a self-referencing parent key.

Key Features:
    - `Study`, `Analysis` and `Sample` are identified by their archive accession,
      which is unique so that find-or-save lookups are idempotent across import runs.
    - `Taxonomy` is identified by its NCBI taxonomy id.

The column types are portable (no PostgreSQL-only types) so the same models can be
created on SQLite for tests.
"""

from sqlalchemy import Column, String, Text, Integer, ForeignKey, Table, Index
from sqlalchemy.orm import relationship
from config.db_config import Base


# Association table: which samples an analysis was computed from
analysis_sample = Table(
    "analysis_sample",
    Base.metadata,
    Column("analysis_id", Integer, ForeignKey("analysis.id"), primary_key=True),
    Column("sample_id", Integer, ForeignKey("sample.id"), primary_key=True),
)

# Association table: taxonomies of a sample
sample_taxonomy = Table(
    "sample_taxonomy",
    Base.metadata,
    Column("sample_id", Integer, ForeignKey("sample.id"), primary_key=True),
    Column("taxonomy_id", Integer, ForeignKey("taxonomy.id"), primary_key=True),
)


class Study(Base):
    """
    Represents an SRA study.
    """
    __tablename__ = "study"

    id = Column(Integer, primary_key=True, autoincrement=True)
    accession = Column(String, nullable=False, unique=True)  # e.g. "ERP000001" or "EGAS00001000001"

    # Descriptive fields
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    center_name = Column(String, nullable=True)
    study_type = Column(String, nullable=True)

    __table_args__ = (
        Index("idx_study_accession", "accession"),
    )

    def __repr__(self):
        return f"<Study(accession={self.accession}, title={self.title})>"


class Analysis(Base):
    """
    Represents an SRA analysis. The owning study is attached by the importer, not by conversion.
    """
    __tablename__ = "analysis"

    id = Column(Integer, primary_key=True, autoincrement=True)
    accession = Column(String, nullable=False, unique=True)

    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    analysis_type = Column(String, nullable=True)  # e.g. "SEQUENCE_VARIATION"
    center_name = Column(String, nullable=True)

    study_id = Column(Integer, ForeignKey("study.id"), nullable=False)
    study = relationship("Study")
    samples = relationship("Sample", secondary=analysis_sample)

    __table_args__ = (
        Index("idx_analysis_accession", "accession"),
        Index("idx_analysis_study_id", "study_id"),
    )

    def __repr__(self):
        return f"<Analysis(accession={self.accession}, study_id={self.study_id})>"


class Sample(Base):
    """
    Represents an SRA sample together with its BioSample cross-reference.
    """
    __tablename__ = "sample"

    id = Column(Integer, primary_key=True, autoincrement=True)
    accession = Column(String, nullable=False, unique=True)
    bio_sample_accession = Column(String, nullable=True)  # e.g. "SAMEA123456"

    name = Column(String, nullable=True)  # Submitter alias
    title = Column(String, nullable=True)

    taxonomies = relationship("Taxonomy", secondary=sample_taxonomy)

    __table_args__ = (
        Index("idx_sample_accession", "accession"),
    )

    def __repr__(self):
        return f"<Sample(accession={self.accession}, bio_sample_accession={self.bio_sample_accession})>"


class Taxonomy(Base):
    """
    Represents one node of the NCBI taxonomy lineage.
    """
    __tablename__ = "taxonomy"

    id = Column(Integer, primary_key=True, autoincrement=True)
    taxonomy_id = Column(Integer, nullable=False, unique=True)  # NCBI taxonomy id, e.g. 9606
    name = Column(String, nullable=False)  # Scientific name
    rank = Column(String, nullable=True)

    parent_id = Column(Integer, ForeignKey("taxonomy.id"), nullable=True)
    parent = relationship("Taxonomy", remote_side=[id])

    def __repr__(self):
        return f"<Taxonomy(taxonomy_id={self.taxonomy_id}, name={self.name})>"
